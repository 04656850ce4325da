from setuptools import setup, find_packages

setup(
    name="feishu-docs-cli",
    version="0.1.0",
    description="Command line tool for managing Feishu cloud documents",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=["httpx", "InquirerPy", "python-dotenv", "tqdm"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "feishu-docs=feishu_docs_cli.__main__:main",
        ]
    },
)
