"""Mindful gamification service: points, levels, streaks and badges."""
