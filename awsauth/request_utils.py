"""
Helpers for preparing outbound requests before they are signed.

All helpers operate on requests.PreparedRequest objects.
"""

import io
from typing import Dict, List, MutableMapping, Tuple, Union
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

import requests

from .constants import DEFAULT_REGION

QueryValue = Union[str, List[str]]


def extract_body(request: requests.PreparedRequest) -> bytes:
    """
    Return the full request body, leaving it readable afterwards.

    File-like bodies are consumed by reading, so they are replaced with a
    fresh in-memory stream over the same bytes. Generator bodies are
    replaced with the joined bytes.

    Args:
        request: Prepared request to inspect

    Returns:
        Body bytes, or b"" when the request has no body
    """
    body = request.body
    if body is None:
        return b''
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode('utf-8')

    if hasattr(body, 'read'):
        payload = body.read()
        if isinstance(payload, str):
            payload = payload.encode('utf-8')
        request.body = io.BytesIO(payload)
        return payload

    payload = b''.join(
        chunk.encode('utf-8') if isinstance(chunk, str) else chunk
        for chunk in body
    )
    request.body = payload
    return payload


def merge_query_params(
    request: requests.PreparedRequest,
    params: MutableMapping[str, QueryValue],
) -> requests.PreparedRequest:
    """
    Merge the request's query string into params and write it back.

    Values already on the request override same-named keys in params,
    and params is updated in place. The request URL ends up with the
    key-sorted form encoding of the union.

    Args:
        request: Prepared request whose URL is rewritten
        params: Caller-supplied default query parameters

    Returns:
        The same request object
    """
    parts = urlsplit(request.url)
    existing: Dict[str, List[str]] = parse_qs(parts.query, keep_blank_values=True)
    for key, values in existing.items():
        params[key] = values

    query = urlencode(sorted(params.items(), key=lambda item: item[0]), doseq=True)
    request.url = urlunsplit(parts._replace(query=query))
    return request


def service_and_region(host: str) -> Tuple[str, str]:
    """
    Derive (service, region) from an AWS endpoint host name.

    Examples:
        iam.amazonaws.com               -> ("iam", "us-east-1")
        sqs.eu-west-1.amazonaws.com     -> ("sqs", "eu-west-1")
        s3-us-west-2.amazonaws.com      -> ("s3", "us-west-2")
        us-west-2.s3.amazonaws.com      -> ("s3", "us-west-2")
    """
    parts = host.split('.')
    service = parts[0]

    if len(parts) >= 4:
        if parts[1] == 's3':
            return parts[1], parts[0]
        return service, parts[1]

    if service.startswith('s3-'):
        return service[:2], service[3:]
    return service, DEFAULT_REGION
