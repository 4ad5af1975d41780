"""Setup configuration for review_lead_time"""

from setuptools import setup, find_namespace_packages

setup(
    name="gh-pr-review-lead-time",
    version="0.1.0",
    description=(
        "CLI tool for GitHub pull request review lead times: time to first "
        "comment and time to approval."
    ),
    author="GitHub PR Review Lead Time Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "gh-pr-review-lead-time=review_lead_time.main:main",
        ],
    },
)
