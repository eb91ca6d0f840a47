from app.services.category_service import CategoryService
from app.services.inventory_sync_service import InventorySyncService, InventorySyncError
from app.services.coupon_service import CouponService
from app.services.tax_service import TaxService
from app.services.checkout_service import CheckoutService
