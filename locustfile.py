from locust import HttpUser, task, between
import random


class PRReviewerUser(HttpUser):
    wait_time = between(0.5, 2.0)

    def on_start(self):
        """Выполняется один раз при старте каждого пользователя"""
        # Уникальная команда и пользователи на каждого виртуального пользователя
        base = random.randint(1, 10**9) * 10
        self.team_name = f"team_{base}"
        self.user_ids = [f"u{base + i}" for i in range(5)]

        team_data = {
            "team_name": self.team_name,
            "members": [
                {"user_id": uid, "username": f"User_{uid}", "is_active": True}
                for uid in self.user_ids
            ]
        }
        self.client.post("/team/add", json=team_data)

        self.pr_ids = []
        for i in range(3):
            self._create_pr(f"PR {i}")

    def _create_pr(self, name):
        pr_id = f"pr-{random.randint(1, 10**12)}"
        pr_data = {
            "pull_request_id": pr_id,
            "pull_request_name": name,
            "author_id": random.choice(self.user_ids)
        }
        response = self.client.post("/pullRequest/create", json=pr_data)
        if response.status_code == 201:
            self.pr_ids.append(pr_id)
            return response.json()["pr"]
        return None

    @task(3)
    def get_team(self):
        """Получение команды"""
        self.client.get(f"/team/get?team_name={self.team_name}")

    @task(2)
    def get_user_reviews(self):
        """Получение PR'ов пользователя"""
        user_id = random.choice(self.user_ids)
        self.client.get(f"/users/getReview?user_id={user_id}")

    @task(2)
    def create_pr(self):
        """Создание PR"""
        self._create_pr("New PR")

    @task(1)
    def merge_pr(self):
        """Merge PR"""
        if self.pr_ids:
            pr_id = random.choice(self.pr_ids)
            self.client.post("/pullRequest/merge", json={"pull_request_id": pr_id})

    @task(1)
    def set_user_active(self):
        """Изменение активности пользователя"""
        self.client.post("/users/setIsActive", json={
            "user_id": random.choice(self.user_ids),
            "is_active": random.choice([True, False])
        })

    @task(1)
    def reassign_reviewer(self):
        """Переназначение ревьювера на свежем PR"""
        pr = self._create_pr("Reassign me")
        if pr and pr["assigned_reviewers"]:
            with self.client.post("/pullRequest/reassign", json={
                "pull_request_id": pr["pull_request_id"],
                "old_user_id": random.choice(pr["assigned_reviewers"])
            }, catch_response=True) as response:
                # NO_CANDIDATE ожидаем, когда в команде мало активных
                if response.status_code in (200, 409):
                    response.success()

    @task(1)
    def mass_deactivate(self):
        """Массовая деактивация и возврат пользователя в команду"""
        user_id = random.choice(self.user_ids)
        self.client.post("/team/deactivate", json={"user_ids": [user_id]})
        self.client.post("/users/setIsActive", json={"user_id": user_id, "is_active": True})

    @task(1)
    def stats(self):
        """Статистика назначений"""
        self.client.get("/stats")
