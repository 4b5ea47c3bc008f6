from alembic import op
import sqlalchemy as sa

revision = "0001_announcements"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "announcements",
        sa.Column("id", sa.String(length=36), primary_key=True),

        sa.Column("pet_name", sa.String(length=120), nullable=True),
        sa.Column("species", sa.String(length=50), nullable=False),
        sa.Column("breed", sa.String(length=120), nullable=True),
        sa.Column("sex", sa.String(length=20), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("microchip_number", sa.String(length=30), nullable=True),

        sa.Column("location_latitude", sa.Float(), nullable=False),
        sa.Column("location_longitude", sa.Float(), nullable=False),
        sa.Column("location_city", sa.String(length=120), nullable=True),
        sa.Column("location_radius", sa.Integer(), nullable=True),

        sa.Column("email", sa.String(length=254), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),

        sa.Column("last_seen_date", sa.Date(), nullable=False),
        sa.Column("photo_url", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("reward", sa.String(length=120), nullable=True),

        sa.Column("management_password_hash", sa.String(length=255), nullable=False),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),

        sa.UniqueConstraint("microchip_number", name="uq_announcements_microchip_number"),
    )

    op.create_index("ix_announcements_status", "announcements", ["status"])
    op.create_index("ix_announcements_created_at", "announcements", ["created_at"])


def downgrade():
    op.drop_index("ix_announcements_created_at", table_name="announcements")
    op.drop_index("ix_announcements_status", table_name="announcements")
    op.drop_table("announcements")
