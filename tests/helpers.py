import uuid

from jobnexus.services.auth import create_access_token

SAMPLE_RESUME = {
    "personal_info": {"name": "Jane Doe", "title": "Backend Engineer", "email": "jane@example.com"},
    "summary": "Backend engineer building APIs.",
    "experience": [
        {
            "title": "Software Engineer",
            "company": "Initech",
            "start_date": "2019-01",
            "end_date": "Present",
            "description": "Maintained billing services",
        }
    ],
    "education": [{"degree": "BSc", "institution": "State University", "field": "Computer Science"}],
    "skills": ["Python", "SQL", "Docker"],
}


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def register_user(client, role: str, name: str = None, **fields):
    """Register a fresh user and return (user_id, headers)"""
    user_id = f"{role}-{uuid.uuid4().hex[:12]}"
    headers = auth_headers(user_id)
    body = {
        "email": f"{user_id}@example.com",
        "name": name or role.title(),
        "role": role,
        **fields,
    }
    response = client.put("/api/users/me", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return user_id, headers


def create_job(client, headers, **overrides) -> dict:
    body = {
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Berlin",
        "description": "Build and operate Python APIs for the payments team.",
        "skills": ["Python", "PostgreSQL"],
        "requirements": ["3 years of Python"],
        **overrides,
    }
    response = client.post("/api/jobs", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def notifications_of_type(client, headers, notification_type: str) -> list:
    response = client.get(f"/api/notifications?type={notification_type}", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["notifications"]
