import os


RUNNER_IMAGE = os.getenv('RUNNER_IMAGE', 'python:3.12-alpine')

# 'docker' for real isolation, 'subprocess' for local development only
SANDBOX_BACKEND = os.getenv('SANDBOX_BACKEND', 'docker')

RUN_TIMEOUT_SECONDS = float(os.getenv('RUN_TIMEOUT_SECONDS', '10'))

MAX_SOURCE_LENGTH = int(os.getenv('MAX_SOURCE_LENGTH', str(200 * 1024)))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
