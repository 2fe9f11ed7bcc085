from .auth import User, SessionToken, PasswordResetToken
from .inventory import Product, BuyStock, RentalAsset
from .rentals import Rental, RentalLine
from .sales import Sale, SaleLine
from .documents import ActivityLog, ActivityLogImmutableError, DocumentSequence

__all__ = [
    'User', 'SessionToken', 'PasswordResetToken',
    'Product', 'BuyStock', 'RentalAsset',
    'Rental', 'RentalLine',
    'Sale', 'SaleLine',
    'ActivityLog', 'ActivityLogImmutableError', 'DocumentSequence',
    'MODELS_BY_ENTITY', 'get_model',
]

# Activity log entity_type -> model. Each model is defined once per process
# (SQLAlchemy's declarative registry); this is the keyed accessor.
MODELS_BY_ENTITY = {
    "user": User,
    "product": Product,
    "buy_stock": BuyStock,
    "rental_asset": RentalAsset,
    "rental": Rental,
    "sale": Sale,
    "activity_log": ActivityLog,
    "password_reset_token": PasswordResetToken,
}


def get_model(entity_type: str):
    try:
        return MODELS_BY_ENTITY[entity_type]
    except KeyError:
        raise KeyError(f"Unknown entity type: {entity_type}") from None
