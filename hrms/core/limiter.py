from slowapi import Limiter
from slowapi.util import get_remote_address

from hrms.core.config import settings

limiter = Limiter(key_func=get_remote_address)

# Applied per endpoint: login and leave submission
write_limit = f"{settings.rate_limit_per_minute}/minute"
