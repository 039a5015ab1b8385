import unittest
from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mealcycle.database import Base
from mealcycle.models.user_profile import UserProfile
from mealcycle.crud import user_profile as crud_user_profile
from mealcycle.schemas.user_profile import UserProfileUpdate

# Use an in-memory SQLite DB
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class TestUserProfileTargets(unittest.TestCase):
    def setUp(self):
        # Create tables
        Base.metadata.create_all(bind=engine)
        self.db = TestingSessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=engine)

    def test_insert_caches_targets(self):
        profile = UserProfile(
            owner_id="owner-1",
            sex="male",
            birth_date=date(1990, 1, 1),
            height_cm=180.0,
            weight_kg=80.0,
            job_level=1,
            weekly_active_minutes=300,
            goal_level=3,
        )
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)

        self.assertIsNotNone(profile.cached_targets)
        self.assertEqual(profile.cached_targets["activity_level"], 3)
        self.assertIsNotNone(profile.cached_targets["bmr_kcal"])
        self.assertEqual(len(profile.cached_targets["micros"]), 30)

    def test_incomplete_profile_caches_nulls(self):
        profile = UserProfile(owner_id="owner-2", sex="female", weight_kg=60.0)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)

        self.assertIsNone(profile.cached_targets["bmr_kcal"])
        self.assertIsNone(profile.cached_targets["recommended_kcal"])
        self.assertEqual(profile.cached_targets["water_ml"], 2160)

    def test_upsert_creates_then_updates(self):
        created = crud_user_profile.upsert_user_profile(
            self.db, "owner-3", UserProfileUpdate(sex="female", height_cm=165, weight_kg=60)
        )
        self.assertEqual(created.owner_id, "owner-3")
        self.assertEqual(created.timezone, "UTC")
        first_physical_update = created.last_physical_update

        updated = crud_user_profile.upsert_user_profile(
            self.db, "owner-3", UserProfileUpdate(weight_kg=58, macro_overrides={"protein_g": 120})
        )
        self.assertEqual(updated.id, created.id)
        self.assertEqual(updated.height_cm, 165)
        self.assertEqual(updated.weight_kg, 58)
        self.assertEqual(updated.macro_overrides, {"protein_g": 120})
        self.assertEqual(updated.cached_targets["water_ml"], 2088)
        self.assertGreaterEqual(updated.last_physical_update, first_physical_update)

    def test_get_profiles_by_owner(self):
        crud_user_profile.upsert_user_profile(self.db, "a", UserProfileUpdate(timezone="Asia/Kolkata"))
        crud_user_profile.upsert_user_profile(self.db, "b", UserProfileUpdate())

        found = crud_user_profile.get_profiles_by_owner(self.db, {"a", "b", "missing"})
        self.assertEqual(set(found), {"a", "b"})
        self.assertEqual(found["a"].timezone, "Asia/Kolkata")
        self.assertEqual(crud_user_profile.get_profiles_by_owner(self.db, set()), {})


if __name__ == '__main__':
    unittest.main()
