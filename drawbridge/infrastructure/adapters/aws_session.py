"""
AWS Session Helpers

Architectural Intent:
- One place to build boto3 clients from AWSConfig values
- Translates botocore failures into ProviderError naming the operation,
  so the CLI reports AWS problems like any other drawbridge error
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from drawbridge.domain.exceptions import ProviderError

logger = logging.getLogger(__name__)


def create_client(
    service: str, region: Optional[str] = None, profile: Optional[str] = None
) -> Any:
    """Return a boto3 client; blank region/profile defer to the boto3 chain."""
    logger.debug("Creating %s client (region=%s, profile=%s)", service, region, profile)
    with aws_errors(f"create {service} client"):
        session = boto3.Session(profile_name=profile or None, region_name=region or None)
        return session.client(service)


@contextmanager
def aws_errors(action: str) -> Iterator[None]:
    """Re-raise botocore errors as ProviderError("failed to <action>: ...")."""
    try:
        yield
    except (BotoCoreError, ClientError) as e:
        raise ProviderError(f"failed to {action}: {e}") from e
