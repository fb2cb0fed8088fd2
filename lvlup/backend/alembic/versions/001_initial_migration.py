# backend/alembic/versions/001_initial_migration.py
"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    ]


def upgrade() -> None:
    # Create tenants table
    op.create_table(
        'tenants',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('domain', sa.String(255), unique=True),
        sa.Column('subscription_tier', sa.String(50), server_default=sa.text("'forming'"), nullable=False),
        sa.Column('max_employees', sa.Integer(), server_default=sa.text("25"), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tenants_subscription_tier', 'tenants', ['subscription_tier'])

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('profile_image_url', sa.String(500)),
        sa.Column('timezone', sa.String(64), server_default=sa.text("'UTC'"), nullable=False),
        sa.Column('tenant_id', sa.String(100), sa.ForeignKey('tenants.id')),
        sa.Column('role', sa.String(50), server_default=sa.text("'employee'"), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])

    # Create departments table
    op.create_table(
        'departments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(100), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('parent_department_id', sa.String(36), sa.ForeignKey('departments.id')),
        *_timestamps(),
    )
    op.create_index('ix_departments_tenant_id', 'departments', ['tenant_id'])

    # Create job positions table
    op.create_table(
        'job_positions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(100), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('department', sa.String(255)),
        sa.Column('level', sa.Integer, server_default=sa.text("1"), nullable=False),
        sa.Column('description', sa.Text),
        *_timestamps(),
    )
    op.create_index('ix_job_positions_tenant_id', 'job_positions', ['tenant_id'])

    # Create employees table
    op.create_table(
        'employees',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), unique=True, nullable=False),
        sa.Column('tenant_id', sa.String(100), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('employee_number', sa.String(50)),
        sa.Column('job_position_id', sa.String(36), sa.ForeignKey('job_positions.id')),
        sa.Column('department_id', sa.String(36), sa.ForeignKey('departments.id')),
        sa.Column('manager_id', sa.String(36), sa.ForeignKey('employees.id')),
        sa.Column('feedback_url', sa.String(100), unique=True, nullable=False),
        sa.Column('hire_date', sa.DateTime),
        sa.Column('status', sa.String(20), server_default=sa.text("'active'"), nullable=False),
        sa.Column('bio', sa.Text),
        sa.Column('work_location', sa.String(20)),
        *_timestamps(),
    )
    op.create_index('ix_employees_tenant_id', 'employees', ['tenant_id'])
    op.create_index('ix_employees_department_id', 'employees', ['department_id'])
    op.create_index('ix_employees_manager_id', 'employees', ['manager_id'])
    op.create_index('ix_employees_status', 'employees', ['status'])

    # Create goals table
    op.create_table(
        'goals',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('employee_id', sa.String(36), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('category', sa.String(50)),
        sa.Column('priority', sa.String(20), server_default=sa.text("'medium'"), nullable=False),
        sa.Column('target_date', sa.DateTime),
        sa.Column('status', sa.String(20), server_default=sa.text("'in_progress'"), nullable=False),
        sa.Column('progress', sa.Integer, server_default=sa.text("0"), nullable=False),
        sa.Column('notes', sa.Text),
        *_timestamps(),
    )
    op.create_index('ix_goals_employee_id', 'goals', ['employee_id'])

    # Create feedbacks table
    op.create_table(
        'feedbacks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('employee_id', sa.String(36), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('giver_name', sa.String(255)),
        sa.Column('giver_email', sa.String(255)),
        sa.Column('relationship', sa.String(50)),
        sa.Column('rating', sa.Integer),
        sa.Column('competency_scores', sa.JSON),
        sa.Column('comments', sa.Text),
        sa.Column('is_anonymous', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('sentiment', sa.String(20)),
        *_timestamps(),
    )
    op.create_index('ix_feedbacks_employee_id', 'feedbacks', ['employee_id'])

    # Create performance reviews table
    op.create_table(
        'performance_reviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('employee_id', sa.String(36), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('reviewer_id', sa.String(36), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('review_period', sa.String(50), nullable=False),
        sa.Column('overall_score', sa.Numeric(3, 2)),
        sa.Column('competency_scores', sa.JSON),
        sa.Column('comments', sa.Text),
        sa.Column('goals', sa.JSON),
        sa.Column('status', sa.String(20), server_default=sa.text("'draft'"), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_performance_reviews_employee_id', 'performance_reviews', ['employee_id'])

    # Create notification tables
    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), unique=True, nullable=False),
        sa.Column('email_notifications', sa.Boolean, server_default=sa.true(), nullable=False),
        sa.Column('push_notifications', sa.Boolean, server_default=sa.true(), nullable=False),
        sa.Column('feedback_notifications', sa.Boolean, server_default=sa.true(), nullable=False),
        sa.Column('goal_reminders', sa.Boolean, server_default=sa.true(), nullable=False),
        sa.Column('weekly_digest', sa.Boolean, server_default=sa.false(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'unread'"), nullable=False),
        sa.Column('metadata', sa.JSON),
        sa.Column('read_at', sa.DateTime),
        *_timestamps(),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_status', 'notifications', ['status'])

    # Create billing audit table
    op.create_table(
        'billing_audit_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(100), sa.ForeignKey('tenants.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id')),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('old_value', sa.JSON),
        sa.Column('new_value', sa.JSON),
        sa.Column('description', sa.Text),
        *_timestamps(),
    )
    op.create_index('ix_billing_audit_logs_tenant_id', 'billing_audit_logs', ['tenant_id'])
    op.create_index('ix_billing_audit_logs_action', 'billing_audit_logs', ['action'])


def downgrade() -> None:
    op.drop_table('billing_audit_logs')
    op.drop_table('notifications')
    op.drop_table('notification_preferences')
    op.drop_table('performance_reviews')
    op.drop_table('feedbacks')
    op.drop_table('goals')
    op.drop_table('employees')
    op.drop_table('job_positions')
    op.drop_table('departments')
    op.drop_table('users')
    op.drop_table('tenants')
