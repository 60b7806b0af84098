"""
Transport backends for the artifact fetcher.

ShellTransportRunner runs the external download tools (wget, curl) and offers
an in-process HTTP retrieval through requests for systems without either.
"""

import os
import shutil
import subprocess
from typing import Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from releasecache.constants import (
    DEFAULT_CHUNK_SIZE,
    TRANSPORT_TIMEOUT_SECONDS,
)
from releasecache.interfaces import TransportRunner
from releasecache.log_utils import logger


def wget_command(url: str, destination: str) -> list:
    """Command line used to fetch `url` into `destination` with wget."""
    return [
        "wget",
        "-q",
        f"--timeout={TRANSPORT_TIMEOUT_SECONDS}",
        "-O",
        destination,
        url,
    ]


def curl_command(url: str, destination: str) -> list:
    """Command line used to fetch `url` into `destination` with curl."""
    # TLS 1.0 or newer only
    return [
        "curl",
        "--tlsv1",
        "--fail",
        "-s",
        "-L",
        "--connect-timeout",
        str(TRANSPORT_TIMEOUT_SECONDS),
        "-o",
        destination,
        url,
    ]


def _build_session() -> requests.Session:
    session = requests.Session()
    # One attempt per transport; the fetcher's transport chain is the only retry
    retry_strategy = Retry(total=0, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class ShellTransportRunner(TransportRunner):
    """Runs download tools as subprocesses with their output captured."""

    def run(self, command: Sequence[str], timeout: Optional[float] = None) -> bool:
        logger.debug(f"Running transport command: {' '.join(command)}")
        try:
            completed = subprocess.run(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"Transport command timed out after {timeout}s: {command[0]}")
            return False
        except OSError as e:
            logger.debug(f"Could not run {command[0]}: {e}")
            return False

        if completed.returncode != 0:
            logger.debug(
                f"{command[0]} exited with status {completed.returncode}: "
                f"{completed.stderr.decode('utf-8', errors='replace').strip()}"
            )
            return False
        return True

    def probe(self, command: Sequence[str]) -> bool:
        if not command or shutil.which(command[0]) is None:
            return False
        return self.run(command, timeout=TRANSPORT_TIMEOUT_SECONDS)

    def fetch_in_process(self, url: str, destination: str, timeout: float) -> bool:
        """
        Stream `url` into `destination` using requests.

        Returns:
            bool: `True` if the response was successful and written, `False` otherwise.
        """
        session = _build_session()
        response = None
        try:
            response = session.get(url, stream=True, timeout=timeout)
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
            return True
        except requests.RequestException as e:
            logger.debug(f"In-process download of {url} failed: {e}")
        except OSError as e:
            logger.debug(f"Could not write {destination}: {e}")
        finally:
            if response is not None:
                response.close()
            session.close()

        if os.path.exists(destination):
            try:
                os.remove(destination)
            except OSError:
                pass
        return False
