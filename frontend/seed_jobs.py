"""
Seed script to populate sample job postings for demo purposes.

Usage:
    python -m frontend.seed_jobs              # Add 20 sample jobs
    python -m frontend.seed_jobs --count 50   # Add 50 sample jobs
    python -m frontend.seed_jobs --clear      # Clear all jobs first, then seed
"""

import argparse
import random
from typing import List, Optional

from jobboard.common.job_types import ExperienceLevel, JobCategory, JobDraft, JobType
from jobboard.common.logger import setup_logging
from jobboard.common.repositories import get_job_repository
from jobboard.services.job_board_service import JobBoardService

# Sample data for generating realistic job listings
COMPANIES = [
    "Infosys", "Tata Consultancy Services", "Wipro", "HCLTech", "Zoho",
    "Flipkart", "Swiggy", "Zomato", "Razorpay", "Freshworks", "Paytm",
    "Ola", "CRED", "Meesho", "PhonePe", "Byju's", "Nykaa", "Dream11",
    "HDFC Bank", "ICICI Bank", "Asian Paints", "Hindustan Unilever",
]

TECH_ROLES = [
    "Software Engineer",
    "Backend Developer",
    "Frontend Developer",
    "Full Stack Developer",
    "Data Analyst",
    "Data Engineer",
    "DevOps Engineer",
    "QA Engineer",
    "Android Developer",
    "Machine Learning Engineer",
]

NON_TECH_ROLES = [
    "Marketing Executive",
    "Content Writer",
    "HR Recruiter",
    "Business Development Associate",
    "Customer Success Manager",
    "Financial Analyst",
    "Operations Executive",
    "Sales Manager",
]

LOCATIONS = [
    "Bangalore",
    "Hyderabad",
    "Pune",
    "Chennai",
    "Mumbai",
    "Gurgaon",
    "Noida",
    "Kolkata",
    "Remote",
    "Remote",  # Weighted more heavily
]

REQUIREMENTS = [
    "Strong communication skills",
    "Ability to work in a fast-paced team",
    "Problem-solving mindset",
    "Proficiency with MS Excel or Google Sheets",
    "Hands-on experience with Python or Java",
    "Familiarity with SQL databases",
    "Understanding of REST APIs",
]

QUALIFICATIONS = [
    "Bachelor's degree in any discipline",
    "B.Tech / B.E. in Computer Science or related field",
    "MBA preferred",
    "Relevant certifications are a plus",
]


def generate_sample_job(rng: Optional[random.Random] = None) -> JobDraft:
    """Generate a single sample job draft."""
    rng = rng or random
    category = rng.choice(list(JobCategory))
    role = rng.choice(TECH_ROLES if category is JobCategory.TECH else NON_TECH_ROLES)
    job_type = rng.choice([JobType.FULL_TIME] * 4 + [JobType.PART_TIME, JobType.CONTRACT, JobType.INTERNSHIP])
    experience = ExperienceLevel.FRESHER if job_type is JobType.INTERNSHIP else rng.choice(list(ExperienceLevel))
    company = rng.choice(COMPANIES)
    title = f"{role} Intern" if job_type is JobType.INTERNSHIP else role

    return JobDraft(
        title=title,
        company=company,
        location=rng.choice(LOCATIONS),
        type=job_type,
        category=category,
        experience_level=experience,
        description=(
            f"{company} is hiring a {title} to join our growing team. "
            f"You will work with experienced colleagues on problems that matter to millions of users.\n"
            f"This role is open to {experience.value.lower()} candidates."
        ),
        url=f"https://careers.example.com/{company.lower().replace(' ', '-')}",
        requirements=rng.sample(REQUIREMENTS, 3),
        qualifications=rng.sample(QUALIFICATIONS, 2),
    )


def seed_jobs(count: int = 20, clear: bool = False) -> List[int]:
    """
    Seed the store with sample jobs.

    Args:
        count: Number of jobs to create
        clear: If True, delete existing jobs first

    Returns:
        Ids of the inserted jobs
    """
    repository = get_job_repository()
    repository.ensure_indexes()
    board = JobBoardService(repository)

    if clear:
        existing = repository.list_jobs()
        for document in existing:
            repository.delete_job(document["id"])
        print(f"Cleared {len(existing)} existing jobs")

    drafts = [generate_sample_job() for _ in range(count)]
    ids = board.add_jobs(drafts)
    print(f"Inserted {len(ids)} sample jobs")

    # Show sample
    print("\nSample jobs:")
    for draft in drafts[:3]:
        print(f"  - {draft.company}: {draft.title} ({draft.location})")

    print(f"\nTotal jobs on the board: {len(board.jobs)}")
    return ids


def main():
    parser = argparse.ArgumentParser(description="Seed sample jobs for demo")
    parser.add_argument("--count", type=int, default=20, help="Number of jobs to create")
    parser.add_argument("--clear", action="store_true", help="Clear existing jobs first")

    args = parser.parse_args()

    setup_logging()
    seed_jobs(count=args.count, clear=args.clear)


if __name__ == "__main__":
    main()
