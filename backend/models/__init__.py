from models.users import User, UserRole, AccountType  # noqa: F401
from models.address import Address  # noqa: F401
from models.product import Category, Product, ProductType  # noqa: F401
from models.cart import CartItem  # noqa: F401
from models.coupon import Coupon, CouponType  # noqa: F401
from models.order import Order, OrderItem, OrderTracking, OrderStatus, PaymentStatus  # noqa: F401
from models.notification import Notification, NotificationType, DeviceToken  # noqa: F401
from models.wholesale import WholesaleUpgradeRequest, WholesaleRequestStatus  # noqa: F401
from models.favorite import Favorite  # noqa: F401
from models.banner import Banner, BannerAudience, DisplayMode  # noqa: F401
from models.log import Log  # noqa: F401
