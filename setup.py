from setuptools import setup, find_packages

setup(
    name="xero_portal",
    version="1.0.0",
    packages=find_packages(include=["xero_portal", "xero_portal.*"]),
    package_data={
        "xero_portal": [
            "templates/*.html",
            "templates/layouts/*.html",
            "templates/partials/*.html",
            "assets/css/*.css",
        ],
    },
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.8.1",
        "cryptography>=3.4.7",
        "fastapi>=0.108.0",
        "itsdangerous>=2.1.0",
        "Jinja2>=3.1.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "PyJWT>=2.4.0",
        "python-dotenv>=0.19.0",
        "python-multipart>=0.0.6",
        "requests>=2.28.0",
        "requests-oauthlib>=1.3.0",
        "uvicorn>=0.15.0",
        "yarl>=1.8.0",
    ],
    extras_require={
        "test": [
            "httpx>=0.24.0",
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    python_requires=">=3.8",
    author="Your Name",
    author_email="your.email@example.com",
    description="Server-rendered Xero contacts and invoices portal using OAuth 1.0a",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/xero-portal",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
