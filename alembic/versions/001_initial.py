"""
Initial migration - Create all tables

Revision ID: 001_initial
Create Date: 2026-10-17 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# Revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables"""

    # Create users table
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30)),
        sa.Column("role", sa.Enum("fighter", "owner", "admin", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, default=True),
        sa.Column("last_login", sa.DateTime()),
        sa.Column("failed_login_attempts", sa.Integer(), default=0),
        sa.Column("locked_until", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_role", "users", ["role"])

    # Create gyms table
    op.create_table(
        "gyms",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(30)),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(100)),
        sa.Column("country", sa.String(100)),
        sa.Column("disciplines", postgresql.JSON(), default=[]),
        sa.Column("currency", sa.String(10), nullable=False, default="USD"),
        sa.Column("status", sa.Enum("pending", "approved", "rejected", name="gymstatus"), nullable=False),
        sa.Column(
            "verification_status",
            sa.Enum("draft", "pending", "verified", "rejected", name="verificationstatus"),
            nullable=False,
        ),
        sa.Column("stripe_account_id", sa.String(100)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
    )

    op.create_index("ix_gyms_owner_id", "gyms", ["owner_id"])
    op.create_index("ix_gyms_name", "gyms", ["name"])

    # Create packages and their variants
    op.create_table(
        "packages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("gym_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Float()),
        sa.Column("booking_mode", sa.Enum("request_to_book", "instant", name="bookingmode")),
        sa.Column("includes_meals", sa.Boolean(), default=False),
        sa.Column("meal_plan_details", postgresql.JSON()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"]),
    )

    op.create_index("ix_packages_gym_id", "packages", ["gym_id"])

    op.create_table(
        "package_variants",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("package_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Float()),
        sa.Column("created_at", sa.DateTime()),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"]),
    )

    op.create_index("ix_package_variants_package_id", "package_variants", ["package_id"])

    # Create bookings table
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_reference", sa.String(10)),
        sa.Column("booking_pin", sa.String(6)),
        sa.Column("user_id", postgresql.UUID(as_uuid=True)),
        sa.Column("guest_email", sa.String(255)),
        sa.Column("guest_phone", sa.String(30)),
        sa.Column("guest_name", sa.String(255)),
        sa.Column("gym_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("package_id", postgresql.UUID(as_uuid=True)),
        sa.Column("package_variant_id", postgresql.UUID(as_uuid=True)),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("discipline", sa.String(100), nullable=False),
        sa.Column("experience_level", sa.String(50), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("platform_fee", sa.Float()),
        sa.Column("stripe_payment_intent_id", sa.String(255)),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "pending_payment",
                "pending_confirmation",
                "gym_confirmed",
                "awaiting_approval",
                "declined",
                "confirmed",
                "completed",
                "cancelled",
                name="bookingstatus",
            ),
            nullable=False,
        ),
        sa.Column("decline_reason", sa.Text()),
        sa.Column("request_submitted_at", sa.DateTime()),
        sa.Column("gym_confirmed_at", sa.DateTime()),
        sa.Column("confirmed_at", sa.DateTime()),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"]),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"]),
        sa.ForeignKeyConstraint(["package_variant_id"], ["package_variants.id"]),
    )

    # Create indexes for bookings
    op.create_index("ix_bookings_booking_reference", "bookings", ["booking_reference"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_guest_email", "bookings", ["guest_email"])
    op.create_index("ix_bookings_gym_id", "bookings", ["gym_id"])
    op.create_index("ix_bookings_stripe_payment_intent_id", "bookings", ["stripe_payment_intent_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    # Create booking access tokens table
    op.create_table(
        "booking_access_tokens",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_single_use", sa.Boolean(), nullable=False, default=False),
        sa.Column("used_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
    )

    op.create_index("ix_booking_access_tokens_booking_id", "booking_access_tokens", ["booking_id"])
    op.create_index("ix_booking_access_tokens_token_hash", "booking_access_tokens", ["token_hash"])

    # Create notifications table
    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True)),
        sa.Column(
            "notification_type",
            sa.Enum(
                "request_received",
                "new_booking",
                "request_accepted",
                "request_declined",
                "booking_confirmed",
                "booking_cancelled",
                "access_link",
                name="notificationtype",
            ),
            nullable=False,
        ),
        sa.Column("channel", sa.Enum("sms", "email", name="notificationchannel"), nullable=False),
        sa.Column("status", sa.Enum("sent", "failed", name="notificationstatus"), nullable=False),
        sa.Column("recipient", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255)),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("provider", sa.String(50)),
        sa.Column("provider_message_id", sa.String(255)),
        sa.Column("sent_at", sa.DateTime()),
        sa.Column("error_message", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
    )

    # Create indexes for notifications
    op.create_index("ix_notifications_booking_id", "notifications", ["booking_id"])
    op.create_index("ix_notifications_notification_type", "notifications", ["notification_type"])
    op.create_index("ix_notifications_status", "notifications", ["status"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    """Drop all tables"""
    op.drop_table("notifications")
    op.drop_table("booking_access_tokens")
    op.drop_table("bookings")
    op.drop_table("package_variants")
    op.drop_table("packages")
    op.drop_table("gyms")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS notificationstatus")
    op.execute("DROP TYPE IF EXISTS notificationchannel")
    op.execute("DROP TYPE IF EXISTS notificationtype")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS bookingmode")
    op.execute("DROP TYPE IF EXISTS verificationstatus")
    op.execute("DROP TYPE IF EXISTS gymstatus")
    op.execute("DROP TYPE IF EXISTS userrole")
