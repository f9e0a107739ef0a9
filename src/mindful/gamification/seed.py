"""Badge seed data: the catalog the badge predicates award from."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindful.db.models import Badge

logger = logging.getLogger(__name__)


def _badge(
    name: str,
    title: str,
    description: str,
    category: str,
    rarity: str,
    points_reward: int,
    icon: str,
    sort_order: int,
    is_secret: bool = False,
) -> dict:
    return {
        "name": name,
        "title": title,
        "description": description,
        "category": category,
        "rarity": rarity,
        "points_reward": points_reward,
        "icon": icon,
        "is_secret": is_secret,
        "is_active": True,
        "sort_order": sort_order,
    }


BADGE_SEED_DATA: list[dict] = [
    # Milestones
    _badge("welcome", "Boas-vindas", "Criou sua conta e começou a jornada", "milestone", "common", 0, "👋", 1),
    _badge("first_week", "Primeira Semana", "Completou 7 dias na plataforma", "milestone", "common", 10, "🌱", 2),
    _badge("veteran", "Veterano", "Completou 30 dias na plataforma", "milestone", "uncommon", 50, "🏅", 3),
    _badge(
        "month_warrior", "Guerreiro do Mês", "Usou a plataforma por 30 dias consecutivos",
        "milestone", "rare", 150, "⚔️", 4,
    ),
    # Community
    _badge(
        "first_post", "Primeira Postagem", "Publicou sua primeira postagem na comunidade",
        "community", "common", 10, "📝", 10,
    ),
    _badge("storyteller", "Contador de Histórias", "Criou 10 postagens na comunidade", "community", "uncommon", 30, "📚", 11),
    _badge(
        "helpful_commenter", "Comentarista Útil", "Recebeu 10 upvotes em comentários",
        "community", "uncommon", 25, "💬", 12,
    ),
    _badge(
        "community_leader", "Líder Comunitário", "Criou 50 postagens na comunidade",
        "community", "rare", 100, "👑", 13,
    ),
    _badge("participative", "Participativo", "Escreveu 50 comentários", "community", "uncommon", 40, "🗣️", 14),
    _badge("popular", "Popular", "Recebeu 100 upvotes nas suas postagens", "community", "rare", 75, "⭐", 15),
    # Sessions
    _badge(
        "first_session", "Primeira Sessão", "Participou da sua primeira sessão em grupo",
        "session", "common", 15, "🎯", 20,
    ),
    _badge("regular_attendee", "Participante Assíduo", "Participou de 10 sessões", "session", "uncommon", 50, "📅", 21),
    _badge("session_master", "Mestre das Sessões", "Participou de 50 sessões", "session", "epic", 200, "🎓", 22),
    # Wellness
    _badge("self_awareness", "Autoconhecimento", "Registrou seu humor pela primeira vez", "wellness", "common", 5, "🪞", 30),
    _badge(
        "mood_tracker", "Rastreador de Humor", "Registrou humor por 7 dias consecutivos",
        "wellness", "common", 20, "😊", 31,
    ),
    _badge(
        "mood_month", "Mês de Autocuidado", "Registrou humor por 30 dias consecutivos",
        "wellness", "rare", 100, "🌈", 32,
    ),
    _badge(
        "streak_master", "Mestre da Constância", "Registrou humor por 100 dias consecutivos",
        "wellness", "legendary", 300, "🔥", 33,
    ),
    _badge(
        "first_journal_entry", "Primeira Página", "Escreveu sua primeira entrada no diário",
        "wellness", "common", 10, "✏️", 34,
    ),
    _badge("journal_keeper", "Guardião do Diário", "Escreveu 10 entradas no diário", "wellness", "uncommon", 30, "📖", 35),
    _badge("prolific_writer", "Escritor Prolífico", "Escreveu 50 entradas no diário", "wellness", "rare", 100, "🖋️", 36),
    _badge(
        "mindfulness_explorer", "Explorador Mindful", "Completou 25 exercícios de mindfulness",
        "wellness", "rare", 75, "🧘", 37,
    ),
    _badge("zen_master", "Mestre Zen", "Completou 30 exercícios de mindfulness", "wellness", "epic", 100, "☯️", 38),
    _badge(
        "breathing_warrior", "Guerreiro da Respiração", "Completou 20 exercícios de respiração",
        "wellness", "uncommon", 40, "🌬️", 39,
    ),
    # Social
    _badge("social_butterfly", "Borboleta Social", "Conectou-se com 5 outros usuários", "social", "uncommon", 25, "🦋", 40),
    _badge("welcoming", "Acolhedor", "Escreveu 10 comentários de apoio", "social", "common", 15, "🤗", 41),
    _badge("community_mentor", "Mentor da Comunidade", "Escreveu 20 comentários de apoio", "social", "rare", 50, "🤝", 42),
    # Special
    _badge(
        "early_adopter", "Pioneiro", "Um dos primeiros usuários da plataforma",
        "special", "legendary", 500, "🚀", 50, is_secret=True,
    ),
]


async def seed_badges(db: AsyncSession) -> int:
    """Upsert every badge in the catalog by name. Returns number of badges seeded."""
    existing = {b.name: b for b in (await db.execute(select(Badge))).scalars()}

    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        badge = existing.get(badge_data["name"])
        if badge is None:
            db.add(Badge(**badge_data))
        else:
            for key, value in badge_data.items():
                setattr(badge, key, value)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
