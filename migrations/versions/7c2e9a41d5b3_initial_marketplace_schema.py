"""initial marketplace schema

Revision ID: 7c2e9a41d5b3
Revises:
Create Date: 2026-10-18 09:12:44.518203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c2e9a41d5b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('password_hash', sa.String(length=255), nullable=False),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('role', sa.String(length=50), nullable=False),
    sa.Column('company_name', sa.String(length=255), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_table('service_categories',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('name')
    )
    op.create_table('coverage_areas',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('state', sa.String(length=2), nullable=False),
    sa.Column('region', sa.String(length=255), nullable=True),
    sa.Column('zip_codes', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('state', 'region', name='uq_coverage_state_region')
    )
    op.create_table('vendor_profiles',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('user_id', sa.String(length=36), nullable=False),
    sa.Column('company_name', sa.String(length=255), nullable=False),
    sa.Column('contact_email', sa.String(length=255), nullable=True),
    sa.Column('is_approved', sa.Boolean(), nullable=False),
    sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('user_id')
    )
    op.create_table('vendor_services',
    sa.Column('vendor_profile_id', sa.String(length=36), nullable=False),
    sa.Column('service_category_id', sa.String(length=36), nullable=False),
    sa.ForeignKeyConstraint(['service_category_id'], ['service_categories.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['vendor_profile_id'], ['vendor_profiles.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('vendor_profile_id', 'service_category_id')
    )
    op.create_table('vendor_coverage_areas',
    sa.Column('vendor_profile_id', sa.String(length=36), nullable=False),
    sa.Column('coverage_area_id', sa.String(length=36), nullable=False),
    sa.ForeignKeyConstraint(['coverage_area_id'], ['coverage_areas.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['vendor_profile_id'], ['vendor_profiles.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('vendor_profile_id', 'coverage_area_id')
    )
    op.create_table('projects',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('business_id', sa.String(length=36), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('service_category_id', sa.String(length=36), nullable=False),
    sa.Column('budget_min', sa.Numeric(precision=12, scale=2), nullable=True),
    sa.Column('budget_max', sa.Numeric(precision=12, scale=2), nullable=True),
    sa.Column('timeline_start', sa.Date(), nullable=True),
    sa.Column('timeline_end', sa.Date(), nullable=True),
    sa.Column('project_city', sa.String(length=100), nullable=True),
    sa.Column('project_state', sa.String(length=2), nullable=False),
    sa.Column('project_zip', sa.String(length=10), nullable=True),
    sa.Column('special_requirements', sa.Text(), nullable=True),
    sa.Column('details', sa.JSON(), nullable=True),
    sa.Column('status', sa.String(length=50), nullable=False),
    sa.Column('selected_vendor_id', sa.String(length=36), nullable=True),
    sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['business_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['selected_vendor_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['service_category_id'], ['service_categories.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('projects', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_projects_business_id'), ['business_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_projects_status'), ['status'], unique=False)

    op.create_table('project_routing',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('project_id', sa.String(length=36), nullable=False),
    sa.Column('vendor_id', sa.String(length=36), nullable=False),
    sa.Column('status', sa.String(length=50), nullable=False),
    sa.Column('routed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['vendor_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('project_id', 'vendor_id', name='uq_routing_project_vendor')
    )
    with op.batch_alter_table('project_routing', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_project_routing_project_id'), ['project_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_project_routing_vendor_id'), ['vendor_id'], unique=False)

    op.create_table('vendor_responses',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('project_id', sa.String(length=36), nullable=False),
    sa.Column('vendor_id', sa.String(length=36), nullable=False),
    sa.Column('bid_amount', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('proposed_timeline', sa.Text(), nullable=False),
    sa.Column('response_notes', sa.Text(), nullable=True),
    sa.Column('is_selected', sa.Boolean(), nullable=False),
    sa.Column('status', sa.String(length=50), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['vendor_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('project_id', 'vendor_id', name='uq_bid_project_vendor')
    )
    with op.batch_alter_table('vendor_responses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_vendor_responses_project_id'), ['project_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_vendor_responses_vendor_id'), ['vendor_id'], unique=False)

    op.create_table('project_activity',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('project_id', sa.String(length=36), nullable=False),
    sa.Column('actor_user_id', sa.String(length=36), nullable=True),
    sa.Column('action', sa.String(length=100), nullable=False),
    sa.Column('details', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('project_activity', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_project_activity_project_id'), ['project_id'], unique=False)


def downgrade():
    with op.batch_alter_table('project_activity', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_project_activity_project_id'))

    op.drop_table('project_activity')
    with op.batch_alter_table('vendor_responses', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_vendor_responses_vendor_id'))
        batch_op.drop_index(batch_op.f('ix_vendor_responses_project_id'))

    op.drop_table('vendor_responses')
    with op.batch_alter_table('project_routing', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_project_routing_vendor_id'))
        batch_op.drop_index(batch_op.f('ix_project_routing_project_id'))

    op.drop_table('project_routing')
    with op.batch_alter_table('projects', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_projects_status'))
        batch_op.drop_index(batch_op.f('ix_projects_business_id'))

    op.drop_table('projects')
    op.drop_table('vendor_coverage_areas')
    op.drop_table('vendor_services')
    op.drop_table('vendor_profiles')
    op.drop_table('coverage_areas')
    op.drop_table('service_categories')
    op.drop_table('users')
