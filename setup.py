"""Setup script for code-review-relay."""

from setuptools import setup, find_packages

setup(
    name="code-review-relay",
    version="1.0.0",
    description="HTTP relay that sends submitted code to Claude on AWS Bedrock for review",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "structlog>=24.1",
        "opentelemetry-api>=1.22",
        "opentelemetry-sdk>=1.22",
        "boto3>=1.34",
        "botocore>=1.34",
        "click>=8.2",
        "rich>=13.7",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "hypothesis>=6.98",
            "httpx>=0.26",
        ],
    },
    entry_points={
        'console_scripts': [
            'code-review-relay=api.cli:main',
        ],
    },
)
