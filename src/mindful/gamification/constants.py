"""Point values, streak milestones and notification messages."""

from __future__ import annotations

from enum import StrEnum


class PointKind(StrEnum):
    """Point-earning event types recorded in the ledger."""

    DAILY_LOGIN = "DAILY_LOGIN"
    STREAK_BONUS_7 = "STREAK_BONUS_7"
    STREAK_BONUS_30 = "STREAK_BONUS_30"
    STREAK_BONUS_100 = "STREAK_BONUS_100"
    POST_CREATED = "POST_CREATED"
    COMMENT_CREATED = "COMMENT_CREATED"
    UPVOTE_RECEIVED = "UPVOTE_RECEIVED"
    SESSION_ATTENDED = "SESSION_ATTENDED"
    MOOD_LOGGED = "MOOD_LOGGED"
    JOURNAL_WRITTEN = "JOURNAL_WRITTEN"
    EXERCISE_COMPLETED = "EXERCISE_COMPLETED"
    BADGE_UNLOCKED = "BADGE_UNLOCKED"


# BADGE_UNLOCKED is absent: its amount is the badge's points_reward.
POINT_VALUES: dict[PointKind, int] = {
    PointKind.DAILY_LOGIN: 10,
    PointKind.STREAK_BONUS_7: 50,
    PointKind.STREAK_BONUS_30: 200,
    PointKind.STREAK_BONUS_100: 500,
    PointKind.POST_CREATED: 20,
    PointKind.COMMENT_CREATED: 5,
    PointKind.UPVOTE_RECEIVED: 2,
    PointKind.SESSION_ATTENDED: 50,
    PointKind.MOOD_LOGGED: 10,
    PointKind.JOURNAL_WRITTEN: 15,
    PointKind.EXERCISE_COMPLETED: 25,
}

DEFAULT_DESCRIPTIONS: dict[PointKind, str] = {
    PointKind.DAILY_LOGIN: "Login diário",
    PointKind.STREAK_BONUS_7: "Bônus de sequência semanal",
    PointKind.STREAK_BONUS_30: "Bônus de sequência mensal",
    PointKind.STREAK_BONUS_100: "Bônus de sequência centenária",
    PointKind.POST_CREATED: "Postagem criada",
    PointKind.COMMENT_CREATED: "Comentário criado",
    PointKind.UPVOTE_RECEIVED: "Upvote recebido",
    PointKind.SESSION_ATTENDED: "Sessão atendida",
    PointKind.MOOD_LOGGED: "Humor registrado",
    PointKind.JOURNAL_WRITTEN: "Entrada no diário",
    PointKind.EXERCISE_COMPLETED: "Exercício completado",
    PointKind.BADGE_UNLOCKED: "Badge desbloqueado",
}

# Bonuses are paid only on the exact day the streak reaches the threshold.
STREAK_BONUS_KINDS: dict[int, PointKind] = {
    7: PointKind.STREAK_BONUS_7,
    30: PointKind.STREAK_BONUS_30,
    100: PointKind.STREAK_BONUS_100,
}


def level_up_message(level: int, name: str) -> str:
    return f"🎉 Parabéns! Você alcançou o nível {level}: {name}!"


def badge_unlocked_message(badge_name: str) -> str:
    return f"🏆 Nova conquista desbloqueada: {badge_name}!"


def streak_bonus_message(days: int) -> str:
    return f"🔥 Bônus de sequência! {days} dias consecutivos!"
