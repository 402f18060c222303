from setuptools import setup, find_packages

setup(
    name="art-curator",
    version="0.1",
    packages=find_packages(exclude=['tests', 'tests.*']),
    py_modules=['main'],
    install_requires=[
        'requests',
        'urllib3',
        'pydantic[email]',
        'pydantic-settings'
    ],
    extras_require={
        'test': ['pytest']
    },
)
