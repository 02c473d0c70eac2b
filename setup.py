from setuptools import setup, find_packages

setup(
    name="bongodb-sync",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"dbsync.config": ["default_tables.json"]},
    entry_points={
        "console_scripts": [
            "bongodb-sync=dbsync.main:main",
        ],
    },
    install_requires=[
        "loguru",
        "sqlalchemy>=1.4",
        "pymysql",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    python_requires=">=3.10",
)
