# proges/models/tables.py
#
# Name -> model map for the table gateway. Importing this module
# registers every model on Base.metadata along with the stock triggers.

from proges.models.users import User
from proges.models.clients import Client
from proges.models.suppliers import Supplier
from proges.models.products import Product, ProductCategory
from proges.models.sales import Sale
from proges.models.sale_items import SaleItem
from proges.models.purchase_orders import PurchaseOrder, PurchaseOrderItem
from proges.models.documents import Document
from proges.models.expenses import Expense
from proges.models.company_settings import CompanySettings
from proges.models.saas import PaymentIntent, SaasPlan, UserSubscription
from proges.models.notifications import Notification
from proges.models import triggers  # noqa: F401


TABLES = {
    "profiles": User,
    "clients": Client,
    "suppliers": Supplier,
    "product_categories": ProductCategory,
    "products": Product,
    "sales": Sale,
    "sale_items": SaleItem,
    "purchase_orders": PurchaseOrder,
    "purchase_order_items": PurchaseOrderItem,
    "documents": Document,
    "expenses": Expense,
    "company_settings": CompanySettings,
    "saas_plans": SaasPlan,
    "user_subscriptions": UserSubscription,
    "payment_intents": PaymentIntent,
    "notifications": Notification,
}
