"""Load testing script for the movie quotes API using Locust.

Run with: locust -f loadtest/locustfile.py --host=http://localhost:3000

Or headless mode:
    locust -f loadtest/locustfile.py --host=http://localhost:3000 \
           --headless -u 10 -r 2 -t 60s
"""

import random

from locust import HttpUser, between, task

SITUATIONS = [
    "My friend just roasted me and I need a perfect comeback",
    "Leaving my job after ten years and want a memorable goodbye",
    "Meeting my girlfriend's parents for the first time",
    "Turning down a sales pitch at the door",
    "Walking into a party where I don't know anyone",
    "My coworker took credit for my work in a meeting",
    "Asking someone out on a first date",
    "Winning an argument with my brother about pizza",
]

# Paraphrases of the same situation, for near-duplicate cache lookups
SITUATION_VARIATIONS = [
    (
        "My friend roasted me and I need a comeback",
        "I got roasted by my friend, what's a good comeback?",
        "Need a comeback after my friend roasted me",
    ),
    (
        "Saying goodbye to coworkers on my last day",
        "It's my last day at the office, how do I say goodbye?",
        "Leaving the office for good and want a farewell line",
    ),
]

MOODS = ["funny", "cool", "dramatic", "sassy"]
ACTORS = ["Robert De Niro", "Arnold Schwarzenegger", "Humphrey Bogart", "Meryl Streep"]
MOVIES = ["Taxi Driver", "The Terminator", "Casablanca", "The Devil Wears Prada"]


class MovieQuotesUser(HttpUser):
    """Simulated user for load testing the movie quotes API."""

    wait_time = between(0.5, 2.0)

    @task(10)
    def situation_repeated(self):
        """Exact repeats of common situations; mostly cache hits once warm."""
        self.client.post(
            "/api/movie-quotes",
            json={"naturalLanguageQuery": random.choice(SITUATIONS)},
            name="/api/movie-quotes (repeat)",
        )

    @task(6)
    def situation_variation(self):
        """Paraphrased situations to exercise the similarity threshold."""
        query = random.choice(random.choice(SITUATION_VARIATIONS))
        self.client.post(
            "/api/movie-quotes",
            json={"naturalLanguageQuery": query},
            name="/api/movie-quotes (variation)",
        )

    @task(3)
    def situation_with_mood(self):
        """Explicit moods; each mood gets its own cache entries."""
        self.client.post(
            "/api/movie-quotes",
            json={
                "naturalLanguageQuery": random.choice(SITUATIONS),
                "mood": random.choice(MOODS),
            },
            name="/api/movie-quotes (mood)",
        )

    @task(2)
    def search_by_actor(self):
        self.client.post(
            "/api/search-by-actor",
            json={"actorName": random.choice(ACTORS)},
            name="/api/search-by-actor",
        )

    @task(2)
    def search_by_movie(self):
        self.client.post(
            "/api/search-by-movie",
            json={"movieTitle": random.choice(MOVIES)},
            name="/api/search-by-movie",
        )

    @task(1)
    def check_stats(self):
        """Check cache statistics."""
        self.client.get("/api/cache-stats", name="/api/cache-stats")

    @task(1)
    def check_health(self):
        """Check health endpoint."""
        self.client.get("/health", name="/health")


class HeavyLoadUser(HttpUser):
    """User that generates heavy load with rapid requests."""

    wait_time = between(0.1, 0.5)

    @task
    def rapid_queries(self):
        """Rapid-fire situation queries to stress test."""
        self.client.post(
            "/api/movie-quotes",
            json={"naturalLanguageQuery": random.choice(SITUATIONS)},
            name="/api/movie-quotes (rapid)",
        )
