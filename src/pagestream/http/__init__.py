"""Request and response objects."""

from pagestream.http.request import Request
from pagestream.http.response import DEFAULT_CONTENT_TYPE, ResponseEmitter, ResponseState

__all__ = ["DEFAULT_CONTENT_TYPE", "Request", "ResponseEmitter", "ResponseState"]
