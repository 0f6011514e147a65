"""
Setup script for the Build Cache Server package.

This package provides a write-once remote cache for build artifacts with
token-based access control, a global size budget and LRU eviction.
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="build-cache-server",
    version="1.0.0",
    author="Build Infrastructure Team",
    description="Remote build-artifact cache on AWS Lambda, DynamoDB and S3",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "scripts", "scripts.*", "lambda", "lambda.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        # AWS SDK
        "boto3>=1.28.85",
        "botocore>=1.31.85",

        # Token signing
        "PyJWT>=2.8.0",

        # HTTP client
        "requests>=2.31.0",
    ],
    extras_require={
        "dev": [
            # Testing
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "moto[dynamodb,s3,cloudwatch]>=5.0.0",

            # Code quality
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",

            # Type stubs
            "boto3-stubs[dynamodb,s3,cloudwatch]>=1.28.85",
        ],
    },
    scripts=["scripts/generate_token.py", "scripts/smoke_test.py"],
    zip_safe=False,
)
