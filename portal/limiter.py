from slowapi import Limiter
from slowapi.util import get_remote_address

# Rate limiter shared by the app and its routers
limiter = Limiter(key_func=get_remote_address)
