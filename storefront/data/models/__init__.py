# import every model so SQLAlchemy registers it in Base.metadata

from storefront.data.models.user import UserModel
from storefront.data.models.product import ProductModel, VariantModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel, OrderLineModel
from storefront.data.models.store_settings import StoreSettingsModel

__all__ = [
    "UserModel",
    "ProductModel",
    "VariantModel",
    "CartItemModel",
    "AddressModel",
    "OrderModel",
    "OrderLineModel",
    "StoreSettingsModel",
]
