"""Static portfolio content served by ``GET /api`` and used to seed storage."""

from __future__ import annotations

import copy
from typing import Any

from portfolio_api.core.errors import ValidationAppError
from portfolio_api.schemas.project import now_timestamp

RESOURCES = ("projects", "skills", "testimonials")

_PROJECTS: list[dict[str, Any]] = [
    {
        "id": 1,
        "title": "E-Commerce Platform",
        "description": "A full-featured e-commerce platform built with Laravel and Vue.js",
        "image": "assets/projects/ecommerce.jpg",
        "category": "Web Application",
        "technologies": ["Laravel", "Vue.js", "MySQL", "Stripe"],
        "githubUrl": "https://github.com/yourusername/ecommerce",
        "liveUrl": "https://demo.example.com",
    },
    {
        "id": 2,
        "title": "Task Management App",
        "description": "A collaborative task management application with real-time updates",
        "image": "assets/projects/taskapp.jpg",
        "category": "Mobile App",
        "technologies": ["Angular", "Firebase", "TypeScript"],
        "githubUrl": "https://github.com/yourusername/taskapp",
        "liveUrl": None,
    },
    {
        "id": 3,
        "title": "Portfolio Website",
        "description": "A modern, responsive portfolio website with dark mode",
        "image": "assets/projects/portfolio.jpg",
        "category": "Website",
        "technologies": ["Angular", "Bootstrap", "PHP"],
        "githubUrl": "https://github.com/yourusername/portfolio",
        "liveUrl": "https://yourdomain.com",
    },
]

_SKILLS: list[dict[str, Any]] = [
    {
        "category": "Frontend",
        "skills": [
            {"name": "HTML/CSS", "level": "Expert"},
            {"name": "JavaScript", "level": "Expert"},
            {"name": "Angular", "level": "Advanced"},
            {"name": "Vue.js", "level": "Advanced"},
            {"name": "React", "level": "Intermediate"},
        ],
    },
    {
        "category": "Backend",
        "skills": [
            {"name": "PHP", "level": "Expert"},
            {"name": "Laravel", "level": "Advanced"},
            {"name": "Node.js", "level": "Intermediate"},
            {"name": "MySQL", "level": "Advanced"},
            {"name": "PostgreSQL", "level": "Intermediate"},
        ],
    },
    {
        "category": "DevOps",
        "skills": [
            {"name": "Git", "level": "Advanced"},
            {"name": "Docker", "level": "Intermediate"},
            {"name": "Linux", "level": "Advanced"},
            {"name": "CI/CD", "level": "Intermediate"},
        ],
    },
]

_TESTIMONIALS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "John Doe",
        "role": "CEO, Tech Company",
        "image": "assets/testimonials/john.jpg",
        "rating": 5,
        "text": "Excellent work! Delivered the project on time and exceeded expectations.",
        "date": "2024-10-15",
    },
    {
        "id": 2,
        "name": "Jane Smith",
        "role": "Product Manager",
        "image": "assets/testimonials/jane.jpg",
        "rating": 5,
        "text": "Great attention to detail and very responsive to feedback.",
        "date": "2024-09-20",
    },
]

_DEMO_SEED: list[dict[str, Any]] = [
    {
        "id": 1,
        "title": "E-Commerce Platform",
        "slug": "e-commerce-platform",
        "description": (
            "A full-featured online store with product management, cart functionality, "
            "and secure checkout."
        ),
        "image": "assets/projects/ecommerce.jpg",
        "technologies": ["Angular", "TypeScript", "Node.js", "MongoDB"],
        "category": "Web App",
        "featured": True,
        "githubUrl": "https://github.com/yourusername/ecommerce",
        "liveUrl": "https://demo.example.com",
    },
    {
        "id": 2,
        "title": "Task Management System",
        "slug": "task-management-system",
        "description": (
            "A collaborative task management application with real-time updates "
            "and team collaboration features."
        ),
        "image": "assets/projects/taskapp.jpg",
        "technologies": ["Vue.js", "Firebase", "Tailwind CSS"],
        "category": "Web App",
        "featured": True,
        "githubUrl": "https://github.com/yourusername/taskmanager",
        "liveUrl": None,
    },
    {
        "id": 3,
        "title": "Portfolio Website",
        "slug": "portfolio-website",
        "description": (
            "A responsive portfolio website built with Angular and Bootstrap "
            "to showcase projects and skills."
        ),
        "image": "assets/projects/portfolio.jpg",
        "technologies": ["Angular", "Bootstrap", "TypeScript"],
        "category": "Website",
        "featured": True,
        "githubUrl": "https://github.com/yourusername/portfolio",
        "liveUrl": "https://yourdomain.com",
    },
]


def get_resource(resource: str | None) -> list[dict[str, Any]]:
    """Return a copy of the static dataset named ``resource`` (default ``projects``).

    Raises:
        ValidationAppError: If ``resource`` is not one of :data:`RESOURCES`.
    """
    name = resource or "projects"
    if name == "projects":
        data = _PROJECTS
    elif name == "skills":
        data = _SKILLS
    elif name == "testimonials":
        data = _TESTIMONIALS
    else:
        raise ValidationAppError(
            code="invalid_resource",
            message="Invalid resource type",
            details={"field": "resource", "hint": f"Expected one of: {', '.join(RESOURCES)}"},
        )
    return copy.deepcopy(data)


def demo_projects() -> list[dict[str, Any]]:
    """Seed records for an empty project collection, stamped with the current time."""
    timestamp = now_timestamp()
    return [
        {**project, "is_published": True, "created_at": timestamp, "updated_at": timestamp}
        for project in copy.deepcopy(_DEMO_SEED)
    ]
