"""create_wedding_tables

Revision ID: 3b7c1d2e9f40
Revises:
Create Date: 2025-09-14 11:20:41.512093

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7c1d2e9f40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'gallery',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('image_type', sa.Enum('main', 'gallery', name='gallery_image_type'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_gallery_id'), 'gallery', ['id'], unique=False)
    op.create_index(op.f('ix_gallery_order_index'), 'gallery', ['order_index'], unique=False)
    op.create_index(op.f('ix_gallery_deleted_at'), 'gallery', ['deleted_at'], unique=False)

    op.create_table(
        'guestbook',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_guestbook_id'), 'guestbook', ['id'], unique=False)
    op.create_index(op.f('ix_guestbook_created_at'), 'guestbook', ['created_at'], unique=False)

    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('side', sa.Enum('groom', 'bride', name='contact_side'), nullable=False),
        sa.Column(
            'relationship',
            sa.Enum('person', 'father', 'mother', 'brother', 'sister', 'other', name='contact_relationship'),
            nullable=False,
        ),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('bank_name', sa.String(length=50), nullable=True),
        sa.Column('account_number', sa.String(length=50), nullable=True),
        sa.Column('kakaopay_link', sa.String(length=255), nullable=True),
    )
    op.create_index(op.f('ix_contacts_id'), 'contacts', ['id'], unique=False)

    op.create_table(
        'admin',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('username'),
    )
    op.create_index(op.f('ix_admin_id'), 'admin', ['id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_admin_id'), table_name='admin')
    op.drop_table('admin')
    op.drop_index(op.f('ix_contacts_id'), table_name='contacts')
    op.drop_table('contacts')
    op.drop_index(op.f('ix_guestbook_created_at'), table_name='guestbook')
    op.drop_index(op.f('ix_guestbook_id'), table_name='guestbook')
    op.drop_table('guestbook')
    op.drop_index(op.f('ix_gallery_deleted_at'), table_name='gallery')
    op.drop_index(op.f('ix_gallery_order_index'), table_name='gallery')
    op.drop_index(op.f('ix_gallery_id'), table_name='gallery')
    op.drop_table('gallery')
