import os
import sys
import unittest
from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from client import WorkoutClient
from db import NotFoundError
from models import Workout, WorkoutEntry
from rest_api import WorkoutAPI


class ClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_client.db"
        self.yaml_path = "test_client.yaml"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.api = WorkoutAPI(db_path=self.db_path, yaml_path=self.yaml_path)
        self.client = WorkoutClient(
            base_url="http://testserver", session=TestClient(self.api.app)
        )

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def _workout(self) -> Workout:
        return Workout(
            title="Upper",
            duration_minutes=30,
            entries=[
                WorkoutEntry(exercise="Bench", sets=5, reps=5, weight=92.5, order_index=0),
                WorkoutEntry(exercise="Row", sets=4, reps=8, order_index=1),
            ],
        )

    def test_create_and_get_workout(self) -> None:
        created = self.client.create_workout(self._workout())
        self.assertIsInstance(created.id, int)
        fetched = self.client.get_workout(created.id)
        self.assertEqual(fetched, created)
        self.assertEqual(fetched.entries[0].weight, 92.5)
        self.assertIsNone(fetched.entries[1].weight)

    def test_updates(self) -> None:
        created = self.client.create_workout(self._workout())
        self.client.update_workout(created.model_copy(update={"title": "Push"}))
        row = created.entries[1].model_copy(update={"order_index": -1})
        self.client.update_workout_entry(row)
        fetched = self.client.get_workout(created.id)
        self.assertEqual(fetched.title, "Push")
        self.assertEqual([e.exercise for e in fetched.entries], ["Row", "Bench"])

    def test_not_found_raises(self) -> None:
        with self.assertRaises(NotFoundError):
            self.client.get_workout(123)
        with self.assertRaises(NotFoundError):
            self.client.update_workout(Workout(id=123, title="Ghost"))
        with self.assertRaises(NotFoundError):
            self.client.update_workout_entry(WorkoutEntry(id=123, exercise="Ghost"))
        with self.assertRaises(NotFoundError):
            self.client.delete_workout(123)
        with self.assertRaises(NotFoundError):
            self.client.delete_workout_entry(123)

    def test_deletes(self) -> None:
        created = self.client.create_workout(self._workout())
        self.client.delete_workout_entry(created.entries[0].id)
        self.assertEqual(len(self.client.get_workout(created.id).entries), 1)
        self.client.delete_workout(created.id)
        with self.assertRaises(NotFoundError):
            self.client.get_workout(created.id)

if __name__ == '__main__':
    unittest.main()
