from setuptools import setup, find_packages

setup(
    name='mlserver_client',
    version='0.1.0',
    packages=find_packages(include=['mlserver_client', 'mlserver_client.*']),
    python_requires='>=3.8',
    install_requires=[
        'httpx',
        'numpy',
        'pandas',
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'fastapi',
            'pytest',
            'pytest-httpx',
        ]
    }
)
