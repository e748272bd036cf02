"""
Request body decoding for the ingestion route.

Devices post either JSON or URL-encoded forms. Forms may describe nested
readings with bracket notation, e.g.

    sender=node-1&airReadings[0][sensor]=DHT22&airReadings[0][humidity]=55

which decodes to the same mapping as the equivalent JSON body. Requests
without a body, or with another content type, decode to `{}`.
"""

import json
import re
from typing import Any, Dict, List
from urllib.parse import parse_qsl

from fastapi import Request

_BRACKETS = re.compile(r"\[([^\]]*)\]")


class BodyParseError(ValueError):
    def to_dict(self) -> Dict[str, Any]:
        return {"name": "BodyParseError", "message": str(self)}


def _key_parts(key: str) -> List[str]:
    head, bracket, rest = key.partition("[")
    if not bracket or not head:
        return [key]
    return [head] + _BRACKETS.findall(bracket + rest)


def _assign(target: Dict[str, Any], parts: List[str], value: str) -> None:
    node = target
    for i, part in enumerate(parts):
        if part == "":
            part = str(len(node))
        if i == len(parts) - 1:
            node[part] = value
            return
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child


def _listify(node: Any) -> Any:
    """Turn dicts keyed only by indices back into ordered lists."""

    if not isinstance(node, dict):
        return node
    node = {key: _listify(value) for key, value in node.items()}
    if node and all(key.isdecimal() for key in node):
        return [node[key] for key in sorted(node, key=int)]
    return node


def decode_form(raw: bytes) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    try:
        pairs = parse_qsl(raw.decode("utf-8"), keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as e:
        raise BodyParseError(f"Form body is not valid UTF-8: {e}") from e
    for key, value in pairs:
        _assign(body, _key_parts(key), value)
    return {key: _listify(value) for key, value in body.items()}


def decode_json(raw: bytes) -> Dict[str, Any]:
    try:
        body = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BodyParseError(f"Malformed JSON body: {e}") from e
    if not isinstance(body, dict):
        raise BodyParseError("JSON body must be an object")
    return body


async def read_body(request: Request) -> Dict[str, Any]:
    """FastAPI dependency returning the decoded request body."""

    raw = await request.body()
    if not raw.strip():
        return {}

    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json" or content_type.endswith("+json"):
        return decode_json(raw)
    if content_type == "application/x-www-form-urlencoded":
        return decode_form(raw)
    return {}
