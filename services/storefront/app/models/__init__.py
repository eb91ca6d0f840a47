# Package exports - these allow cleaner imports like:
# from app.models import Product, Category
# Used by alembic/env.py for migration autogenerate
from app.models.site import Site
from app.models.category import Category
from app.models.product import Product
from app.models.inventory import Inventory
from app.models.coupon import Coupon, CouponRedemption, DiscountType
from app.models.tax_rate import TaxRate
from app.models.order import Order
from app.models.sync_run import SyncRun, SyncStatus
