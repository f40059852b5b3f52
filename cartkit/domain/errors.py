# cartkit/domain/errors.py


class CartError(Exception):
    """Bazowy wyjatek dla domeny koszyka."""


class CartValidationError(CartError, ValueError):
    """Niepoprawne dane wejsciowe (id, nazwa, cena, ilosc, typ kuponu)."""


class InvalidRowIdError(CartError, LookupError):
    pass


class CouponNotAppliedError(CartError, LookupError):
    pass


class CartAlreadyStoredError(CartError):
    pass


class UnknownModelError(CartError, ValueError):
    pass
