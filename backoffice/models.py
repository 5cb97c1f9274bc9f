import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_id():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    auth_uid = Column(String(255), unique=True, index=True, nullable=False)  # JWT "sub" claim
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("BusinessStaff", back_populates="user")


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    settings = Column(JSON, default=dict, nullable=True)
    monthly_sales_target = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    staff = relationship("BusinessStaff", back_populates="business", cascade="all, delete-orphan")
    team = relationship("TeamMember", back_populates="business", cascade="all, delete-orphan")
    business_settings = relationship(
        "BusinessSettings", back_populates="business", uselist=False, cascade="all, delete-orphan"
    )


class BusinessStaff(Base):
    """Dashboard access for a user within a business"""

    __tablename__ = "business_staff"
    __table_args__ = (UniqueConstraint("user_id", "business_id", name="uq_business_staff_user"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    role = Column(String(20), default="staff", nullable=False)  # admin, staff
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    permissions = Column(JSON, default=dict, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="memberships")
    business = relationship("Business", back_populates="staff")


class TeamMember(Base):
    """Sales staff credited on orders (no login required)"""

    __tablename__ = "team"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    business = relationship("Business", back_populates="team")


class BusinessSettings(Base):
    """Per-business integration credentials (CRM + Cardcom)"""

    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), unique=True, nullable=False)
    location_id = Column(String(255), nullable=True)  # CRM location
    api_token = Column(Text, nullable=True)  # CRM token, Fernet-encrypted
    cardcom_terminal = Column(String(50), nullable=True)
    cardcom_api_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    business = relationship("Business", back_populates="business_settings")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    contact_id = Column(String(255), nullable=True, index=True)  # CRM contact id
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = relationship("CustomerOrder", back_populates="customer", cascade="all, delete-orphan")
    quotes = relationship("Quote", back_populates="customer", cascade="all, delete-orphan")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True)
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="ILS", nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CustomerOrder(Base):
    __tablename__ = "customer_orders"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    staff_id = Column(String(36), ForeignKey("team.id"), nullable=True)
    total_amount = Column(Float, nullable=False)
    currency = Column(String(3), default="ILS", nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, completed, cancelled
    payment_method = Column(String(50), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    transaction_id = Column(String(255), nullable=True)
    payment_details = Column(JSON, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="orders")
    staff = relationship("TeamMember")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=generate_id)
    order_id = Column(String(36), ForeignKey("customer_orders.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True)
    quantity = Column(Integer, nullable=False)
    price_at_time = Column(Float, nullable=False)  # Price snapshot when ordered
    currency = Column(String(3), default="ILS", nullable=False)

    order = relationship("CustomerOrder", back_populates="items")
    product = relationship("Product")


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    total_amount = Column(Float, nullable=False)
    currency = Column(String(3), default="ILS", nullable=False)
    status = Column(String(20), default="draft", nullable=False)  # draft, sent, accepted, rejected
    valid_until = Column(Date, nullable=False)
    payment_id = Column(String(255), nullable=True)  # Cardcom LowProfileId
    payment_status = Column(String(20), nullable=True)  # pending, paid
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer", back_populates="quotes")
    items = relationship("QuoteItem", back_populates="quote", cascade="all, delete-orphan")


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id = Column(String(36), primary_key=True, default=generate_id)
    quote_id = Column(String(36), ForeignKey("quotes.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_time = Column(Float, nullable=False)
    currency = Column(String(3), default="ILS", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    quote = relationship("Quote", back_populates="items")


class BusinessWebhook(Base):
    """Automation: outbound webhook subscribed to order/product events"""

    __tablename__ = "business_webhooks"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    url = Column(Text, nullable=False)
    on_order_created = Column(Boolean, default=False, nullable=False)
    on_order_paid = Column(Boolean, default=False, nullable=False)
    on_product_purchased = Column(Boolean, default=False, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=True)  # null = any product
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class WebhookQueue(Base):
    """One pending outbound notification"""

    __tablename__ = "webhook_queue"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    webhook_id = Column(
        String(36), ForeignKey("business_webhooks.id", ondelete="SET NULL"), nullable=True
    )
    webhook_url = Column(Text, nullable=False)
    event_type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending, completed, failed
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    last_attempt_at = Column(DateTime, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class WebhookLog(Base):
    __tablename__ = "webhook_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    webhook_id = Column(String(36), nullable=True, index=True)
    queue_id = Column(String(36), nullable=True, index=True)
    business_id = Column(String(36), nullable=True, index=True)
    order_id = Column(String(36), nullable=True)
    product_id = Column(String(36), nullable=True)
    url = Column(Text, nullable=True)
    request_payload = Column(JSON, nullable=True)
    response_status = Column(Integer, nullable=True)  # null on transport error
    response_body = Column(Text, nullable=True)
    sent_at = Column(DateTime, default=datetime.utcnow)


class SystemLog(Base):
    """Audit trail for admin actions"""

    __tablename__ = "system_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), nullable=True)
    business_id = Column(String(36), nullable=True)
    action = Column(String(100), nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
