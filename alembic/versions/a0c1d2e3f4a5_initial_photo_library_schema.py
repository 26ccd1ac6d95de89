"""initial photo library schema

Revision ID: a0c1d2e3f4a5
Revises:
Create Date: 2026-10-18 09:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a0c1d2e3f4a5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('storage_label', sa.String(length=255), nullable=True),
        sa.Column('profile_image_path', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('should_change_password', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('quota_size_in_bytes', sa.BigInteger(), nullable=True),
        sa.Column('quota_usage_in_bytes', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('storage_label'),
    )

    op.create_table('partners',
        sa.Column('shared_by_id', sa.Uuid(), nullable=False),
        sa.Column('shared_with_id', sa.Uuid(), nullable=False),
        sa.Column('in_timeline', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['shared_by_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['shared_with_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('shared_by_id', 'shared_with_id'),
    )

    op.create_table('assets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('device_asset_id', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('type', sa.String(length=10), nullable=False, server_default='IMAGE'),
        sa.Column('original_path', sa.Text(), nullable=False),
        sa.Column('original_file_name', sa.String(length=500), nullable=False),
        sa.Column('checksum', sa.LargeBinary(), nullable=False),
        sa.Column('preview_path', sa.Text(), nullable=True),
        sa.Column('thumbnail_path', sa.Text(), nullable=True),
        sa.Column('encoded_video_path', sa.Text(), nullable=True),
        sa.Column('file_created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('file_modified_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('local_date_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_visible', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_offline', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('duplicate_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_assets_owner_id', 'assets', ['owner_id'])
    op.create_index('ix_assets_checksum', 'assets', ['checksum'])
    op.create_index('ix_assets_file_created_at', 'assets', ['file_created_at'])
    op.create_index('ix_assets_duplicate_id', 'assets', ['duplicate_id'])

    op.create_table('exif',
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('make', sa.String(length=255), nullable=True),
        sa.Column('model', sa.String(length=255), nullable=True),
        sa.Column('lens_model', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('state', sa.String(length=255), nullable=True),
        sa.Column('country', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('date_time_original', sa.DateTime(timezone=True), nullable=True),
        sa.Column('exif_image_width', sa.Integer(), nullable=True),
        sa.Column('exif_image_height', sa.Integer(), nullable=True),
        sa.Column('iso', sa.Integer(), nullable=True),
        sa.Column('f_number', sa.Float(), nullable=True),
        sa.Column('exposure_time', sa.String(length=32), nullable=True),
        sa.Column('focal_length', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('asset_id'),
    )
    op.create_index('ix_exif_city', 'exif', ['city'])

    op.create_table('smart_search',
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('embedding', sa.LargeBinary(), nullable=False),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('asset_id'),
    )

    op.create_table('asset_job_status',
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('duplicates_detected_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('asset_id'),
    )

    op.create_table('tags',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_tag_user_name'),
    )

    op.create_table('tag_asset',
        sa.Column('tag_id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('tag_id', 'asset_id'),
    )

    op.create_table('albums',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('album_name', sa.String(length=255), nullable=False, server_default='Untitled Album'),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('album_thumbnail_asset_id', sa.Uuid(), nullable=True),
        sa.Column('is_activity_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('order', sa.String(length=4), nullable=False, server_default='desc'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['album_thumbnail_asset_id'], ['assets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_albums_owner_id', 'albums', ['owner_id'])

    op.create_table('albums_assets',
        sa.Column('album_id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('album_id', 'asset_id'),
    )

    op.create_table('albums_shared_users',
        sa.Column('album_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('album_id', 'user_id'),
    )

    op.create_table('shared_links',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('album_id', sa.Uuid(), nullable=True),
        sa.Column('key', sa.LargeBinary(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='album'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('allow_upload', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('allow_download', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('show_exif', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )

    op.create_table('person',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('thumbnail_path', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_person_owner_id', 'person', ['owner_id'])

    op.create_table('geodata_places',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('country_code', sa.String(length=2), nullable=False),
        sa.Column('admin1_name', sa.String(length=200), nullable=True),
        sa.Column('admin2_name', sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_geodata_places_name', 'geodata_places', ['name'])


def downgrade() -> None:
    op.drop_index('ix_geodata_places_name', table_name='geodata_places')
    op.drop_table('geodata_places')
    op.drop_index('ix_person_owner_id', table_name='person')
    op.drop_table('person')
    op.drop_table('shared_links')
    op.drop_table('albums_shared_users')
    op.drop_table('albums_assets')
    op.drop_index('ix_albums_owner_id', table_name='albums')
    op.drop_table('albums')
    op.drop_table('tag_asset')
    op.drop_table('tags')
    op.drop_table('asset_job_status')
    op.drop_table('smart_search')
    op.drop_index('ix_exif_city', table_name='exif')
    op.drop_table('exif')
    op.drop_index('ix_assets_duplicate_id', table_name='assets')
    op.drop_index('ix_assets_file_created_at', table_name='assets')
    op.drop_index('ix_assets_checksum', table_name='assets')
    op.drop_index('ix_assets_owner_id', table_name='assets')
    op.drop_table('assets')
    op.drop_table('partners')
    op.drop_table('users')
