"""initial madrasah schema with tenant row-level security

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

from madrasah_admin.core.permissions import TABLE_WRITE_POLICY, row_level_policy_statements

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

ROLE_CHECK = "role IN ('admin', 'teacher', 'manager', 'parent', 'user')"


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def _tenant_column():
    return sa.Column('madrasah_id', sa.Uuid(), sa.ForeignKey('madrasah.id', ondelete='CASCADE'), nullable=False)


def _index_tenant(table):
    op.create_index(op.f(f'ix_{table}_madrasah_id'), table, ['madrasah_id'])
    op.create_index(op.f(f'ix_{table}_created_at'), table, ['created_at'])


def upgrade() -> None:
    op.create_table('madrasah',
        *_base_columns(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('madrasah_id', sa.String(length=50), nullable=False),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('contact', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('base_url', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('madrasah_id', name='uq_madrasah_code'),
    )
    op.create_index(op.f('ix_madrasah_madrasah_id'), 'madrasah', ['madrasah_id'], unique=True)
    op.create_index(op.f('ix_madrasah_created_at'), 'madrasah', ['created_at'])

    op.create_table('profiles',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        _tenant_column(),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'madrasah_id', name='uq_profile_user_madrasah'),
    )
    _index_tenant('profiles')
    op.create_index(op.f('ix_profiles_user_id'), 'profiles', ['user_id'])

    op.create_table('user_roles',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        _tenant_column(),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'madrasah_id', name='uq_user_role_madrasah'),
        sa.CheckConstraint(ROLE_CHECK, name='ck_user_roles_role'),
    )
    _index_tenant('user_roles')
    op.create_index('idx_user_roles_user', 'user_roles', ['user_id'])

    op.create_table('invites',
        *_base_columns(),
        _tenant_column(),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('used_count', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(ROLE_CHECK, name='ck_invites_role'),
    )
    _index_tenant('invites')
    op.create_index(op.f('ix_invites_token'), 'invites', ['token'], unique=True)

    op.create_table('backups',
        *_base_columns(),
        _tenant_column(),
        sa.Column('backup_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('backup_type', sa.String(length=20), nullable=False),
        sa.Column('backup_data', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("backup_type IN ('manual', 'auto', 'pre_restore')", name='ck_backup_type'),
    )
    _index_tenant('backups')
    op.create_index('idx_backups_madrasah_date', 'backups', ['madrasah_id', 'backup_date'])

    op.create_table('teachers',
        *_base_columns(),
        _tenant_column(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('qualification', sa.String(length=500), nullable=True),
        sa.Column('subject', sa.String(length=200), nullable=True),
        sa.Column('contact', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _index_tenant('teachers')

    op.create_table('classes',
        *_base_columns(),
        _tenant_column(),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _index_tenant('classes')
    op.create_index(op.f('ix_classes_teacher_id'), 'classes', ['teacher_id'])

    op.create_table('class_teachers',
        *_base_columns(),
        _tenant_column(),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('class_id', 'teacher_id', name='uq_class_teacher'),
    )
    _index_tenant('class_teachers')
    op.create_index(op.f('ix_class_teachers_class_id'), 'class_teachers', ['class_id'])
    op.create_index(op.f('ix_class_teachers_teacher_id'), 'class_teachers', ['teacher_id'])

    op.create_table('students',
        *_base_columns(),
        _tenant_column(),
        sa.Column('class_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('father_name', sa.String(length=200), nullable=False),
        sa.Column('roll_number', sa.String(length=50), nullable=False),
        sa.Column('class', sa.String(length=100), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('contact', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        # Restore inserts students before classes inside one transaction
        sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='SET NULL', deferrable=True, initially='DEFERRED'),
    )
    _index_tenant('students')
    op.create_index(op.f('ix_students_class_id'), 'students', ['class_id'])

    op.create_table('attendance',
        *_base_columns(),
        _tenant_column(),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('time_slot', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _index_tenant('attendance')
    op.create_index(op.f('ix_attendance_student_id'), 'attendance', ['student_id'])
    op.create_index('idx_attendance_student_date', 'attendance', ['student_id', 'date'])

    op.create_table('fees',
        *_base_columns(),
        _tenant_column(),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('month BETWEEN 1 AND 12', name='ck_fee_month'),
        sa.CheckConstraint('amount >= 0', name='ck_fee_amount_positive'),
    )
    _index_tenant('fees')
    op.create_index(op.f('ix_fees_student_id'), 'fees', ['student_id'])

    for ledger in ('income', 'expense'):
        op.create_table(ledger,
            *_base_columns(),
            _tenant_column(),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('category', sa.String(length=100), nullable=False),
            sa.Column('amount', sa.Numeric(12, 2), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        _index_tenant(ledger)

    op.create_table('salaries',
        *_base_columns(),
        _tenant_column(),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('month BETWEEN 1 AND 12', name='ck_salary_month'),
    )
    _index_tenant('salaries')
    op.create_index(op.f('ix_salaries_teacher_id'), 'salaries', ['teacher_id'])

    op.create_table('loans',
        *_base_columns(),
        _tenant_column(),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('loan_date', sa.Date(), nullable=False),
        sa.Column('return_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _index_tenant('loans')
    op.create_index(op.f('ix_loans_teacher_id'), 'loans', ['teacher_id'])

    op.create_table('learning_reports',
        *_base_columns(),
        _tenant_column(),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('class_type', sa.String(length=50), nullable=False),
        sa.Column('sabaq_para_number', sa.Integer(), nullable=True),
        sa.Column('sabaq_lines_pages', sa.String(length=100), nullable=True),
        sa.Column('sabaq_amount', sa.String(length=100), nullable=True),
        sa.Column('sabqi_para', sa.Integer(), nullable=True),
        sa.Column('sabqi_amount', sa.String(length=100), nullable=True),
        sa.Column('manzil_paras', sa.String(length=100), nullable=True),
        sa.Column('manzil_amount', sa.String(length=100), nullable=True),
        sa.Column('period_1', sa.Text(), nullable=True),
        sa.Column('period_2', sa.Text(), nullable=True),
        sa.Column('period_3', sa.Text(), nullable=True),
        sa.Column('period_4', sa.Text(), nullable=True),
        sa.Column('period_5', sa.Text(), nullable=True),
        sa.Column('period_6', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _index_tenant('learning_reports')
    op.create_index(op.f('ix_learning_reports_student_id'), 'learning_reports', ['student_id'])

    if op.get_bind().dialect.name == 'postgresql':
        for table in TABLE_WRITE_POLICY:
            for statement in row_level_policy_statements(table):
                op.execute(statement)


def downgrade() -> None:
    for table in ('learning_reports', 'loans', 'salaries', 'expense', 'income', 'fees',
                  'attendance', 'students', 'class_teachers', 'classes', 'teachers',
                  'backups', 'invites', 'user_roles', 'profiles', 'madrasah'):
        op.drop_table(table)
