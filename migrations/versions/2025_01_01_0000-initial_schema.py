"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the content tables:
    - articles: published articles with the lifetime view_count
    - categories / article_categories: categories and their article links
    - users: registered readers
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'articles' not in existing_tables:
        op.create_table(
            'articles',
            sa.Column('id', sa.String(length=128), nullable=False),
            sa.Column('title', sa.String(length=300), nullable=False),
            sa.Column('slug', sa.String(length=300), nullable=False),
            sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('like_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('comment_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('last_viewed_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_articles_slug', 'articles', ['slug'], unique=True)
        op.create_index('ix_articles_published_at', 'articles', ['published_at'])
        op.create_index('ix_articles_view_count', 'articles', ['view_count'])
        op.create_index('ix_articles_last_viewed_at', 'articles', ['last_viewed_at'])

    if 'categories' not in existing_tables:
        op.create_table(
            'categories',
            sa.Column('id', sa.String(length=128), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('slug', sa.String(length=200), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('slug')
        )

    if 'article_categories' not in existing_tables:
        op.create_table(
            'article_categories',
            sa.Column('article_id', sa.String(length=128), nullable=False),
            sa.Column('category_id', sa.String(length=128), nullable=False),
            sa.PrimaryKeyConstraint('article_id', 'category_id')
        )
        op.create_index('ix_article_categories_category_id', 'article_categories', ['category_id'])

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.String(length=128), nullable=False),
            sa.Column('email', sa.String(length=320), nullable=False),
            sa.Column('display_name', sa.String(length=200), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('email')
        )
        op.create_index('ix_users_created_at', 'users', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_users_created_at', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_article_categories_category_id', table_name='article_categories')
    op.drop_table('article_categories')
    op.drop_table('categories')
    op.drop_index('ix_articles_last_viewed_at', table_name='articles')
    op.drop_index('ix_articles_view_count', table_name='articles')
    op.drop_index('ix_articles_published_at', table_name='articles')
    op.drop_index('ix_articles_slug', table_name='articles')
    op.drop_table('articles')
