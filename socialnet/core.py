import os
import asyncio
from fastapi import Request
from pymongo.errors import ConnectionFailure, PyMongoError
from prometheus_client import Counter, start_http_server
import logging

logger = logging.getLogger('socialnet')

MONGO_URL = os.getenv('MONGO_URL', 'mongodb://127.0.0.1:27017')
MONGO_DB = os.getenv('MONGO_DB', 'socialNetworkDB')

REQUESTS = Counter('socialnet_requests_total', 'HTTP requests handled', ['method', 'status'])
CROSS_WRITE_FAILURES = Counter(
    'socialnet_cross_write_failures_total',
    'Second writes of two-step operations that raised',
    ['operation'],
)

def init_metrics():
    """Start the Prometheus metrics server when METRICS_PORT is set"""
    port = os.getenv('METRICS_PORT')
    if not port:
        return
    start_http_server(int(port))
    logger.info({'msg': 'metrics_started', 'port': int(port)})

async def ensure_indexes(db):
    await db.users.create_index('username', unique=True)
    await db.users.create_index('email', unique=True)
    await db.thoughts.create_index('username')

async def prepare_store(client, db, retry_delay: float = 3):
    """Ping the server and build indexes, retrying until the store answers"""
    attempt = 0
    while True:
        attempt += 1
        try:
            await client.admin.command('ping')
            await ensure_indexes(db)
            logger.info({'msg': 'mongo_ready', 'attempt': attempt})
            return attempt
        except PyMongoError as e:
            logger.warning({'msg': 'mongo_not_ready', 'attempt': attempt, 'error': str(e)})
            await asyncio.sleep(retry_delay)

async def mongo_startup(app):
    """Publish the client and database on app.state; the driver connects lazily and reconnects on its own"""
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(
        MONGO_URL,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=5000,
        socketTimeoutMS=5000,
        maxPoolSize=50,
        retryWrites=True,
        retryReads=True
    )
    app.state.mongo = client
    app.state.db = client[MONGO_DB]
    logger.info({'msg': 'mongo_configured', 'url': MONGO_URL, 'db': MONGO_DB})
    # requests made before the store answers fail as store errors, not at startup
    app.state.store_ready = asyncio.create_task(prepare_store(client, app.state.db))

async def mongo_shutdown(app):
    task = getattr(app.state, 'store_ready', None)
    if task is not None and not task.done():
        task.cancel()
    client = getattr(app.state, 'mongo', None)
    if client is not None:
        client.close()
        app.state.mongo = None
        app.state.db = None
        logger.info({'msg': 'mongo_closed'})

def get_db(request: Request):
    db = getattr(request.app.state, 'db', None)
    if db is None:
        raise ConnectionFailure('storage unavailable')
    return db
