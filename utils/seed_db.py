# utils/seed_db.py
import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone

from core.database import AsyncSessionLocal
from core.security import hash_password
from models.battle import Battle, BattleComment, BattleReaction
from models.knight import Knight, Stigma, UserKnight
from models.profile import Profile
from models.user import User, UserRole
from services.aggregation import BATTLE_TYPES
from utils.slugs import slugify

log = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

NUM_BATTLES = 30
TEAM_SIZE = 3
DEMO_PASSWORD = "oblivium"

KNIGHT_NAMES = [
    "Seiya de Pégaso", "Shiryu de Dragão", "Hyoga de Cisne", "Shun de Andrômeda",
    "Ikki de Fênix", "Mu de Áries", "Aldebaran de Touro", "Saga de Gêmeos",
    "Aiolia de Leão", "Shaka de Virgem", "Milo de Escorpião", "Camus de Aquário",
]
STIGMA_NAMES = ["Atena", "Hades", "Poseidon", "Lua", "Sol"]
MEMBERS = [
    ("admin@example.com", "Admin", "admin"),
    ("marin@example.com", "Marin", "user"),
    ("shaina@example.com", "Shaina", "user"),
]
COMMENTS = [
    "Que time forte!",
    "O estigma fez toda a diferença.",
    "Essa composição é meta demais.",
]


async def seed():
    async with AsyncSessionLocal() as session:
        users = []
        for email, name, role in MEMBERS:
            user = User(email=email, password_hash=hash_password(DEMO_PASSWORD))
            session.add(user)
            await session.flush()
            session.add(Profile(user_id=user.id, email=email, full_name=name, active=True))
            session.add(UserRole(user_id=user.id, role=role))
            users.append(user)
        await session.commit()

        # 1. Knights and stigmas
        knights = []
        for name in KNIGHT_NAMES:
            knight = Knight(name=name, slug=slugify(name), created_by=users[0].id)
            session.add(knight)
            knights.append(knight)
        stigmas = [Stigma(name=name) for name in STIGMA_NAMES]
        session.add_all(stigmas)
        await session.commit()

        # 2. Battles spread over the last month
        now = datetime.now(timezone.utc)
        battles = []
        for i in range(NUM_BATTLES):
            roster = random.sample(knights, TEAM_SIZE * 2)
            battle = Battle(
                winner_team=[k.id for k in roster[:TEAM_SIZE]],
                loser_team=[k.id for k in roster[TEAM_SIZE:]],
                winner_team_stigma=random.choice(stigmas).id,
                loser_team_stigma=random.choice(stigmas).id,
                tipo=random.choice(BATTLE_TYPES),
                meta=random.random() < 0.2,
                created_by=random.choice(users).id,
                created_at=now - timedelta(hours=i * 20),
            )
            session.add(battle)
            battles.append(battle)
        await session.commit()

        # 3. Comments, one reply each, and reactions
        for battle in random.sample(battles, 10):
            author, replier = random.sample(users, 2)
            comment = BattleComment(battle_id=battle.id, user_id=author.id, content=random.choice(COMMENTS))
            session.add(comment)
            await session.flush()
            session.add(BattleComment(
                battle_id=battle.id,
                user_id=replier.id,
                content=random.choice(COMMENTS),
                parent_id=comment.id,
            ))
            for user in users:
                session.add(BattleReaction(
                    battle_id=battle.id,
                    user_id=user.id,
                    reaction_type=random.choice(["like", "dislike"]),
                ))
        await session.commit()

        # 4. Knights owned by each member
        for user in users:
            for knight in random.sample(knights, 5):
                session.add(UserKnight(user_id=user.id, knight_id=knight.id, is_used=random.random() < 0.5))
        await session.commit()

    log.info("DB seeded successfully")


if __name__ == "__main__":
    asyncio.run(seed())
