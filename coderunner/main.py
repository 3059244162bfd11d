import logging

from fastapi import FastAPI, HTTPException

from . import config
from .executor import execute
from .schemas import ExecutionRequest, ExecutionResponse

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title='Python Code Runner')


@app.get('/health')
def health():
    return {'ok': True}


# Plain def: FastAPI runs it in the threadpool, so the blocking sandbox wait
# does not stall other requests.
@app.post('/run', response_model=ExecutionResponse, response_model_exclude_none=True)
def run_code(req: ExecutionRequest):
    try:
        return execute(req)
    except Exception:
        logger.exception('unexpected execution error')
        raise HTTPException(status_code=500, detail='execution error')
