from alembic import op
import sqlalchemy as sa

revision = '0001_init_eva360'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'empresas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(200), nullable=False),
    )

    op.create_table(
        'equipos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('empresa_id', sa.Integer(), sa.ForeignKey('empresas.id'), nullable=False),
        sa.Column('nombre', sa.String(200), nullable=False),
    )
    op.create_index('ix_equipos_empresa_id', 'equipos', ['empresa_id'])

    op.create_table(
        'encuestas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(255), nullable=False),
    )

    op.create_table(
        'preguntas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('encuesta_id', sa.Integer(), sa.ForeignKey('encuestas.id'), nullable=False),
        sa.Column('texto', sa.Text(), nullable=False),
        sa.Column('dimension', sa.String(50), nullable=False),
    )
    op.create_index('ix_preguntas_encuesta_id', 'preguntas', ['encuesta_id'])
    op.create_index('ix_preguntas_dimension', 'preguntas', ['dimension'])

    op.create_table(
        'encuesta_equipo',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('encuesta_id', sa.Integer(), sa.ForeignKey('encuestas.id'), nullable=False),
        sa.Column('equipo_id', sa.Integer(), sa.ForeignKey('equipos.id'), nullable=False),
        sa.Column('codigo', sa.String(20), nullable=False, unique=True),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('evaluado_nombre', sa.String(200), nullable=True),
    )
    op.create_index('ix_encuesta_equipo_encuesta_id', 'encuesta_equipo', ['encuesta_id'])
    op.create_index('ix_encuesta_equipo_equipo_id', 'encuesta_equipo', ['equipo_id'])

    op.create_table(
        'sesiones_equipo',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('encuesta_equipo_id', sa.Integer(), sa.ForeignKey('encuesta_equipo.id'), nullable=False),
        sa.Column('token_sesion', sa.String(64), nullable=False, unique=True),
        sa.Column('finalizada', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('creado_en', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_sesiones_equipo_encuesta_equipo_id', 'sesiones_equipo', ['encuesta_equipo_id'])

    op.create_table(
        'respuestas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sesion_id', sa.Integer(), sa.ForeignKey('sesiones_equipo.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pregunta_id', sa.Integer(), sa.ForeignKey('preguntas.id'), nullable=False),
        sa.Column('valor', sa.Integer(), nullable=False),
        sa.Column('actualizado_en', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('sesion_id', 'pregunta_id', name='uq_respuesta_sesion_pregunta'),
        sa.CheckConstraint('valor BETWEEN 1 AND 5', name='ck_respuesta_valor_1_5'),
    )
    op.create_index('ix_respuestas_sesion_id', 'respuestas', ['sesion_id'])
    op.create_index('ix_respuestas_pregunta_id', 'respuestas', ['pregunta_id'])

    op.create_table(
        'usuarios',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(50), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(200), nullable=False),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('creado_en', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('actualizado_en', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor', sa.String(50), nullable=True),
        sa.Column('accion', sa.String(100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('ip', sa.String(64), nullable=True),
        sa.Column('ua', sa.Text(), nullable=True),
        sa.Column('creado_en', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_audit_logs_actor', 'audit_logs', ['actor'])

def downgrade():
    op.drop_index('ix_audit_logs_actor', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('usuarios')
    op.drop_index('ix_respuestas_pregunta_id', table_name='respuestas')
    op.drop_index('ix_respuestas_sesion_id', table_name='respuestas')
    op.drop_table('respuestas')
    op.drop_index('ix_sesiones_equipo_encuesta_equipo_id', table_name='sesiones_equipo')
    op.drop_table('sesiones_equipo')
    op.drop_index('ix_encuesta_equipo_equipo_id', table_name='encuesta_equipo')
    op.drop_index('ix_encuesta_equipo_encuesta_id', table_name='encuesta_equipo')
    op.drop_table('encuesta_equipo')
    op.drop_index('ix_preguntas_dimension', table_name='preguntas')
    op.drop_index('ix_preguntas_encuesta_id', table_name='preguntas')
    op.drop_table('preguntas')
    op.drop_table('encuestas')
    op.drop_index('ix_equipos_empresa_id', table_name='equipos')
    op.drop_table('equipos')
    op.drop_table('empresas')
