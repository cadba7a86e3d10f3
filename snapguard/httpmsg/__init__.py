from snapguard.httpmsg.dump import (
    content_type_is_json,
    dump_api_response,
    dump_request,
    dump_request_out,
    dump_response,
)
from snapguard.httpmsg.message import HTTPMessage

__all__ = [
    "HTTPMessage",
    "content_type_is_json",
    "dump_api_response",
    "dump_request",
    "dump_request_out",
    "dump_response",
]
