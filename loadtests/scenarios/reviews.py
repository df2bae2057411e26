"""Review load test scenarios.

Each journey posts a review with photos, replaces the photos, reads the
product listing and deletes the review, so every uploaded photo should be
released again by the end of the run.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import image_data, review_data, reviewer_id
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ReviewState


class ReviewPhotoJourney(SequentialTaskSet):
    """Create Review -> Replace Photos -> List Product Reviews -> Delete."""

    def on_start(self):
        self.state = ReviewState(user_id=reviewer_id())

    @task
    def create_review(self):
        payload = review_data(self.state.user_id, photos=random.randint(0, 3))
        with self.client.post("/reviews", json=payload, catch_response=True, name="POST /reviews") as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.review_id = body["review_id"]
                self.state.product_id = body["product_id"]
                self.state.photo_count = len(body["images"])
            else:
                resp.failure(f"Create review failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def replace_photos(self):
        payload = {
            "user_id": self.state.user_id,
            "image_action": "replace",
            "images": [image_data(n) for n in range(2)],
        }
        with self.client.put(
            f"/reviews/{self.state.review_id}",
            json=payload,
            catch_response=True,
            name="PUT /reviews/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.photo_count = len(resp.json()["images"])
            else:
                resp.failure(f"Replace photos failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def list_reviews(self):
        with self.client.get(
            f"/products/{self.state.product_id}/reviews",
            params={"sort": random.choice(["newest", "highest", "lowest"]), "limit": 10},
            catch_response=True,
            name="GET /products/{id}/reviews",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List reviews failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def delete_review(self):
        with self.client.delete(
            f"/reviews/{self.state.review_id}",
            params={"user_id": self.state.user_id},
            catch_response=True,
            name="DELETE /reviews/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Delete review failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ReviewerUser(HttpUser):
    tasks = [ReviewPhotoJourney]
    wait_time = between(1, 3)
    weight = 2
