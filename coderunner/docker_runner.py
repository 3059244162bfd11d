import logging
import os
import shutil
import subprocess
import sys
import tempfile
import time
from typing import Any, Dict, Optional

import docker
from docker.errors import DockerException
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import ReadTimeout

from . import config

logger = logging.getLogger(__name__)

SOURCE_NAME = 'main.py'
CONTAINER_WORKDIR = '/workspace'

TIMEOUT_MARKER = '[ERROR] Execution timeout.'

# Minimal environment for the local backend: no secrets leak into user code
_SAFE_ENV = {
    'PATH': '/usr/local/bin:/usr/bin:/bin',
    'HOME': '/tmp',
    'LANG': 'C.UTF-8',
    'PYTHONIOENCODING': 'utf-8',
    'PYTHONUNBUFFERED': '1',
    'PYTHONDONTWRITEBYTECODE': '1',
}


class SandboxSetupError(Exception):
    """The sandbox could not be staged or started at all."""


def _read_output(raw) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, tuple):
        out = b"".join([p for p in raw if p])
    else:
        out = raw
    return out.decode('utf-8', errors='replace')


def _finish(output: str, exit_code: Optional[int], timed_out: bool) -> Dict[str, Any]:
    if timed_out:
        output = output.rstrip('\n') + '\n' + TIMEOUT_MARKER
    elif exit_code:
        output = output.rstrip('\n') + f'\n[ERROR] Process exited with status {exit_code}.'
    return {
        'output': output,
        'exit_code': exit_code,
        'timed_out': timed_out,
    }


def _run_docker(workdir: str, timeout: float) -> Dict[str, Any]:
    container = None
    try:
        client = docker.from_env()
        # Workspace is mounted read-only; the only writable place is a tmpfs
        container = client.containers.run(
            config.RUNNER_IMAGE,
            command=['python', f'{CONTAINER_WORKDIR}/{SOURCE_NAME}'],
            detach=True,
            working_dir=CONTAINER_WORKDIR,
            volumes={workdir: {'bind': CONTAINER_WORKDIR, 'mode': 'ro'}},
            network_mode='none',
            read_only=True,
            tmpfs={'/tmp': ''},
            security_opt=['no-new-privileges'],
            cap_drop=['ALL'],
            environment={'PYTHONUNBUFFERED': '1', 'PYTHONDONTWRITEBYTECODE': '1'},
        )

        timed_out = False
        exit_code = None
        started = time.monotonic()
        try:
            status = container.wait(timeout=timeout)
            exit_code = status.get('StatusCode')
        except (ReadTimeout, RequestsConnectionError) as e:
            # newer urllib3 reports a read timeout as a connection error
            if isinstance(e, RequestsConnectionError) and time.monotonic() - started < timeout:
                raise SandboxSetupError(f'lost connection to docker daemon: {e}')
            timed_out = True
            logger.warning('container %s exceeded %ss, killing', container.short_id, timeout)
            try:
                container.kill()
            except DockerException as e:
                # exited between the timeout and the kill
                logger.warning('failed to kill container %s: %s', container.short_id, e)

        output = _read_output(container.logs(stdout=True, stderr=True))
        return _finish(output, exit_code, timed_out)

    except DockerException as e:
        raise SandboxSetupError(str(e))

    finally:
        if container is not None:
            try:
                container.remove(force=True)
            except DockerException as e:
                logger.warning('failed to remove container %s: %s', container.short_id, e)


def _run_subprocess(workdir: str, timeout: float) -> Dict[str, Any]:
    try:
        proc = subprocess.run(
            [sys.executable, SOURCE_NAME],
            cwd=workdir,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=_SAFE_ENV,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.warning('process exceeded %ss, killed', timeout)
        return _finish(_read_output(e.output), None, True)
    except OSError as e:
        raise SandboxSetupError(str(e))
    return _finish(_read_output(proc.stdout), proc.returncode, False)


_BACKENDS = {
    'docker': _run_docker,
    'subprocess': _run_subprocess,
}


def run_source(
    source: str,
    timeout: Optional[float] = None,
    files: Optional[Dict[str, str]] = None,
    backend: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run ``source`` once in a fresh sandbox and return its combined output.

    ``files`` are extra artifacts staged beside the program. A crash or timeout
    of the program is reported in the output; only a failure to stage or start
    the sandbox raises ``SandboxSetupError``.
    """
    if timeout is None:
        timeout = config.RUN_TIMEOUT_SECONDS
    backend = backend or config.SANDBOX_BACKEND
    runner = _BACKENDS.get(backend)
    if runner is None:
        raise SandboxSetupError(f'unknown sandbox backend {backend!r}')

    # Fresh directory per run: concurrent requests never share a staging path
    try:
        workdir = tempfile.mkdtemp(prefix='exec_')
    except OSError as e:
        raise SandboxSetupError(f'cannot create staging directory: {e}')
    try:
        artifacts = dict(files or {})
        artifacts[SOURCE_NAME] = source
        try:
            for name, content in artifacts.items():
                with open(os.path.join(workdir, name), 'w', encoding='utf-8') as f:
                    f.write(content)
        except OSError as e:
            raise SandboxSetupError(f'cannot stage source: {e}')
        return runner(workdir, timeout)
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
