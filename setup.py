from setuptools import setup, find_packages

setup(
    name='orgfeed',
    version='0.1.0',
    packages=find_packages(include=['orgfeed', 'orgfeed.*']),
    python_requires='>=3.9',
    install_requires=[
        'pyyaml',
        'python-dotenv',
        'pydantic>=2',
        'click',
    ],
    extras_require={
        'dev': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'orgfeed=orgfeed.cli:cli',
        ],
    },
)
