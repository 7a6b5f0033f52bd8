"""create access gateway tables

Revision ID: a7c3e91d2b40
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a7c3e91d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('user', 'admin', 'superadmin', name='user_role')
oauth_provider = sa.Enum('google', 'github', name='oauth_provider')
access_action = sa.Enum('invite', 'accept-invitation', 'signin', 'revoke', 'extend-access', name='access_action')
access_status = sa.Enum('success', 'failed', name='access_status')


def upgrade() -> None:
    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_invitation_accepted', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'])
    op.create_index(op.f('ix_users_is_active'), 'users', ['is_active'])

    op.create_table(
        'user_oauth_links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('provider', oauth_provider, nullable=False),
        sa.Column('provider_id', sa.String(length=255), nullable=False),
        sa.Column('linked_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'provider', name='uq_user_oauth_links_user_provider'),
        sa.UniqueConstraint('provider', 'provider_id', name='uq_user_oauth_links_provider_id')
    )
    op.create_index(op.f('ix_user_oauth_links_id'), 'user_oauth_links', ['id'])
    op.create_index(op.f('ix_user_oauth_links_user_id'), 'user_oauth_links', ['user_id'])

    # Tenants
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tenants_id'), 'tenants', ['id'])
    op.create_index(op.f('ix_tenants_slug'), 'tenants', ['slug'], unique=True)
    op.create_index(op.f('ix_tenants_domain'), 'tenants', ['domain'])
    op.create_index(op.f('ix_tenants_is_active'), 'tenants', ['is_active'])

    # Invitations and their tenant scopes
    op.create_table(
        'invitations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invitations_id'), 'invitations', ['id'])
    op.create_index(op.f('ix_invitations_email'), 'invitations', ['email'])
    op.create_index(op.f('ix_invitations_user_id'), 'invitations', ['user_id'])
    op.create_index(op.f('ix_invitations_token'), 'invitations', ['token'], unique=True)
    op.create_index(op.f('ix_invitations_expires_at'), 'invitations', ['expires_at'])
    op.create_index(op.f('ix_invitations_is_used'), 'invitations', ['is_used'])
    op.create_index(op.f('ix_invitations_revoked_at'), 'invitations', ['revoked_at'])

    op.create_table(
        'invitation_tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invitation_id', sa.Integer(), nullable=False),
        sa.Column('tenant_slug', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['invitation_id'], ['invitations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invitation_id', 'tenant_slug', name='uq_invitation_tenants_invitation_slug')
    )
    op.create_index(op.f('ix_invitation_tenants_id'), 'invitation_tenants', ['id'])
    op.create_index(op.f('ix_invitation_tenants_invitation_id'), 'invitation_tenants', ['invitation_id'])
    op.create_index(op.f('ix_invitation_tenants_tenant_slug'), 'invitation_tenants', ['tenant_slug'])

    # Access log
    op.create_table(
        'access_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('tenant_id', sa.String(length=100), nullable=True),
        sa.Column('action', access_action, nullable=False),
        sa.Column('status', access_status, nullable=False),
        sa.Column('ip_address', sa.String(length=100), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_access_logs_id'), 'access_logs', ['id'])
    op.create_index(op.f('ix_access_logs_user_id'), 'access_logs', ['user_id'])
    op.create_index(op.f('ix_access_logs_tenant_id'), 'access_logs', ['tenant_id'])
    op.create_index(op.f('ix_access_logs_action'), 'access_logs', ['action'])
    op.create_index(op.f('ix_access_logs_status'), 'access_logs', ['status'])
    op.create_index(op.f('ix_access_logs_timestamp'), 'access_logs', ['timestamp'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('access_logs')
    op.drop_table('invitation_tenants')
    op.drop_table('invitations')
    op.drop_table('tenants')
    op.drop_table('user_oauth_links')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (access_status, access_action, oauth_provider, user_role):
        enum_type.drop(bind, checkfirst=True)
