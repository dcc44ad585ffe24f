from typing import Iterator, List

from graphql import GraphQLError
from strawberry.extensions import SchemaExtension

from moviegraph.errors import InvalidArgument

VALIDATION_ERROR = "ValidationError"


def classify_error(error: GraphQLError) -> GraphQLError:
    """
    Reports an InvalidArgument raised by a resolver as a ValidationError carrying
    the exception's message verbatim. Any other error is returned unchanged.
    """
    original = error.original_error
    if isinstance(original, InvalidArgument):
        return GraphQLError(
            str(original) or type(original).__name__,
            original_error=original,
            extensions={"classification": VALIDATION_ERROR},
        )
    return error


def classify_errors(errors: List[GraphQLError]) -> List[GraphQLError]:
    return [classify_error(error) for error in errors]


class ErrorClassifier(SchemaExtension):
    """Rewrites the operation's errors once execution has finished."""

    def on_operation(self) -> Iterator[None]:
        yield
        result = self.execution_context.result
        if result is not None and getattr(result, "errors", None):
            result.errors = classify_errors(result.errors)
