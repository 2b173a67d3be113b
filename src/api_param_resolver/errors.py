"""Exceptions raised by api-param-resolver."""


class ConfigurationError(ValueError):
    """Invalid generation settings or an operation that cannot be described."""


class MultipleBodyParametersError(ConfigurationError):
    """An operation resolved to more than one body parameter."""

    def __init__(self, operation_id: str, names: list[str]):
        self.operation_id = operation_id
        self.names = names
        super().__init__(
            f"The operation '{operation_id}' has more than one body parameter: {', '.join(names)}."
        )
