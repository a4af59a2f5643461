"""Setup wflambda."""

from setuptools import find_packages, setup

with open("README.md") as f:
    long_description = f.read()

inst_reqs = [
    "aws-lambda-powertools>=2.0.0",
    "aws_xray_sdk>=2.6.0,<3",
    "pydantic>2",
    "pydantic-settings~=2.0",
    "psutil",
    "wavefront-sdk-python>=2.0",
]

extra_reqs = {
    "dev": ["pre-commit", "python-dotenv"],
    "test": ["pytest", "pytest-cov"],
}


setup(
    name="wflambda",
    description="Telemetry wrapper for AWS Lambda handlers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="aws lambda metrics wavefront",
    version="0.1.0",
    license="Apache-2.0",
    package_dir={"": "src"},
    packages=find_packages(where="src", exclude=["tests*"]),
    zip_safe=False,
    install_requires=inst_reqs,
    extras_require=extra_reqs,
)
