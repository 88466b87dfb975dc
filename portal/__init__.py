"""
formguard portal: FastAPI app wired to the CSRF token manager
"""
