# storefront/utils/errors.py
"""
Erros tipados do núcleo de pedidos.
O núcleo só levanta; quem traduz para HTTP é o blueprint / error handler.
"""


class StorefrontError(Exception):
    """Erro base com status HTTP sugerido para a borda"""
    status_code = 500

    def __init__(self, message=None, status_code=None, errors=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors


class ValidationError(StorefrontError):
    status_code = 400


class MissingField(ValidationError):
    def __init__(self, *fields):
        self.fields = list(fields)
        super().__init__(
            f"Campos obrigatórios: {', '.join(fields)}",
            errors=self.fields,
        )


class InvalidStatus(ValidationError):
    pass


class InvalidPaymentStatus(ValidationError):
    pass


class InvalidDate(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


class InvalidTransition(ValidationError):
    pass


class NotFound(StorefrontError):
    status_code = 404


class DuplicateOrderNumber(StorefrontError):
    status_code = 409


class Unauthorized(StorefrontError):
    status_code = 401


class Forbidden(StorefrontError):
    status_code = 403
