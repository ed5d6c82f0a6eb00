import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from . import __version__
from .routes import router
from .core import REQUESTS, init_metrics, mongo_startup, mongo_shutdown
from .errors import register_exception_handlers
import logging
from pythonjsonlogger.json import JsonFormatter

# setup structured logging
logger = logging.getLogger('socialnet')
handler = logging.StreamHandler()
formatter = JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO').upper())

app = FastAPI(title="Social Network API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

app.include_router(router, prefix="/api")

@app.get('/healthz')
async def healthz():
    return {'status': 'ok'}

@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg':'request_start','method':request.method,'path':request.url.path})
    response = await call_next(request)
    REQUESTS.labels(method=request.method, status=str(response.status_code)).inc()
    logger.info({'msg':'request_end','status': response.status_code})
    return response

@app.on_event("startup")
async def startup():
    # Best-effort init, store errors surface per request until Mongo answers
    try:
        init_metrics()
    except Exception as e:
        logger.warning({'msg': 'metrics_init_failed', 'error': str(e)})
    await mongo_startup(app)

@app.on_event("shutdown")
async def shutdown():
    await mongo_shutdown(app)

def run():
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=int(os.getenv('PORT', '3001')))
