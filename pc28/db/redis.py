import redis.asyncio as aioredis
from pc28.core.config import settings

r = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
