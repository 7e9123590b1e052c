from typing import Any, Dict, List

from .normalize import email_key, identity_key, normalize_text


def compute_board_stats(jobs: List[Dict[str, Any]], users: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Headline numbers for the board.

    Active freelancers counts distinct identities across registered users
    and job posters. Users are keyed by id, else email; jobs by posterId,
    else postedBy email, else poster name.
    """
    categories = {str(job.get("category") or "").strip() for job in jobs}
    categories.discard("")

    freelancers = set()
    for user in users:
        if identity_key(user.get("id")):
            freelancers.add(f"id:{identity_key(user.get('id'))}")
        elif email_key(user.get("email")):
            freelancers.add(f"email:{email_key(user.get('email'))}")
    for job in jobs:
        if identity_key(job.get("posterId")):
            freelancers.add(f"id:{identity_key(job.get('posterId'))}")
        elif email_key(job.get("postedBy")):
            freelancers.add(f"email:{email_key(job.get('postedBy'))}")
        elif str(job.get("postedByName") or "").strip():
            freelancers.add(f"name:{normalize_text(str(job['postedByName']))}")

    return {
        "jobs_posted": len(jobs),
        "freelancers_active": len(freelancers),
        "categories": len(categories),
    }
