"""GraphQL error mapping.

AppError -> `{message, extensions: {code: <kind>, errorCode: <numeric>}}`.
Anything else raised inside a resolver is masked as INTERNAL_ERROR (the
traceback is logged server-side). Parse and validation errors from
graphql-core pass through unchanged.
"""

import logging
from collections.abc import Iterator

from graphql import GraphQLError
from strawberry.extensions import SchemaExtension

from src.mp_common.errors import AppError, ErrorKind, InternalError

logger = logging.getLogger(__name__)


def to_client_error(error: GraphQLError) -> GraphQLError:
    original = error.original_error
    if original is None:
        return error
    if isinstance(original, AppError):
        app_error = original
        message = original.message
    else:
        app_error = InternalError()
        message = app_error.message
    return GraphQLError(
        message,
        nodes=error.nodes,
        source=error.source,
        positions=error.positions,
        path=error.path,
        original_error=original,
        extensions={"code": app_error.kind, "errorCode": app_error.code},
    )


def log_error(error: GraphQLError) -> None:
    original = error.original_error
    if isinstance(original, AppError):
        if original.kind == ErrorKind.INTERNAL_ERROR:
            logger.error("GraphQL %s at %s: %s", original.kind, error.path, original.message)
        else:
            logger.info("GraphQL %s at %s: %s", original.kind, error.path, original.message)
    elif original is not None:
        logger.error("Unhandled error at %s", error.path, exc_info=original)
    else:
        logger.debug("GraphQL request error: %s", error.message)


class AppErrorExtension(SchemaExtension):
    def on_operation(self) -> Iterator[None]:
        yield
        result = self.execution_context.result
        errors = getattr(result, "errors", None)
        if errors:
            result.errors = [to_client_error(error) for error in errors]
