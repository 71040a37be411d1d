"""Add page_views table

Revision ID: 002_page_views
Revises: 001_initial
Create Date: 2025-01-02 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '002_page_views'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create page_views: one row per (article_id, view_date).

    The unique constraint is the conflict target of the daily upsert.
    """
    bind = op.get_bind()
    if 'page_views' in inspect(bind).get_table_names():
        return

    op.create_table(
        'page_views',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('article_id', sa.String(length=128), nullable=False),
        sa.Column('view_date', sa.Date(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('article_id', 'view_date', name='uq_page_views_article_day')
    )
    op.create_index('ix_page_views_article_id', 'page_views', ['article_id'])
    op.create_index('ix_page_views_view_date', 'page_views', ['view_date'])


def downgrade() -> None:
    op.drop_index('ix_page_views_view_date', table_name='page_views')
    op.drop_index('ix_page_views_article_id', table_name='page_views')
    op.drop_table('page_views')
