"""Initial schema: team, tournament, tournamentteam, tournamentmatch, usersession

Revision ID: 001_copa_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_copa_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("short_name", sa.String(), nullable=True),
        sa.Column("crest_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("season", sa.String(), nullable=True),
        sa.Column("region", sa.String(), nullable=True),
        sa.Column("max_teams", sa.Integer(), nullable=False),
        sa.Column("registration_mode", sa.String(), nullable=False),
        sa.Column("registration_fee_amount", sa.Float(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("bracket_status", sa.String(), nullable=False),
        sa.Column("champion_team_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["champion_team_id"], ["team.id"]),
    )
    op.create_index("ix_tournament_slug", "tournament", ["slug"], unique=True)

    op.create_table(
        "tournamentteam",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("team_status", sa.String(), nullable=False),
        sa.Column("registration_type", sa.String(), nullable=False),
        sa.Column("payment_status", sa.String(), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
        sa.UniqueConstraint("tournament_id", "team_id", name="uq_tournament_team"),
    )
    op.create_index("ix_tournamentteam_tournament_id", "tournamentteam", ["tournament_id"])
    op.create_index("ix_tournamentteam_team_id", "tournamentteam", ["team_id"])

    op.create_table(
        "tournamentmatch",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("team_a_id", sa.Integer(), nullable=True),
        sa.Column("team_b_id", sa.Integer(), nullable=True),
        sa.Column("score_a", sa.Integer(), nullable=True),
        sa.Column("score_b", sa.Integer(), nullable=True),
        sa.Column("penalties_a", sa.Integer(), nullable=True),
        sa.Column("penalties_b", sa.Integer(), nullable=True),
        sa.Column("winner_team_id", sa.Integer(), nullable=True),
        sa.Column("is_bye", sa.Boolean(), nullable=False),
        sa.Column("next_match_id", sa.Integer(), nullable=True),
        sa.Column("next_slot", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["team_a_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["team_b_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["winner_team_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["next_match_id"], ["tournamentmatch.id"]),
        sa.UniqueConstraint("tournament_id", "round", "match_number", name="uq_tournament_round_match"),
    )
    op.create_index("ix_tournamentmatch_tournament_id", "tournamentmatch", ["tournament_id"])

    op.create_table(
        "usersession",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("user_email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_usersession_token", "usersession", ["token"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_usersession_token", table_name="usersession")
    op.drop_table("usersession")
    op.drop_index("ix_tournamentmatch_tournament_id", table_name="tournamentmatch")
    op.drop_table("tournamentmatch")
    op.drop_index("ix_tournamentteam_team_id", table_name="tournamentteam")
    op.drop_index("ix_tournamentteam_tournament_id", table_name="tournamentteam")
    op.drop_table("tournamentteam")
    op.drop_index("ix_tournament_slug", table_name="tournament")
    op.drop_table("tournament")
    op.drop_table("team")
