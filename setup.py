from setuptools import setup, find_packages

setup(
    name="lifeline-quiz",
    version="0.1.0",
    description="Timed multiple-choice console quiz with lifelines, streaks and negative marking",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "PyYAML>=6.0",
        "pyttsx3>=2.90",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lifeline-quiz=lifeline_quiz.app:main",
        ],
    },
)
