import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with the test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no infrastructure required)."""
    _install(session)
    session.run(
        "pytest",
        "tests/ordering/domain/",
        "tests/reviews/domain/",
    )


@nox.session(python=PYTHON_VERSIONS)
def tests_api(session: nox.Session) -> None:
    """Run the HTTP integration tests."""
    _install(session)
    session.run("pytest", "tests/integration/")


@nox.session(python="3.12")
def loadtest(session: nox.Session) -> None:
    """Run the Locust scenarios headless against a running API (``--host`` via posargs)."""
    session.install("-e", ".[loadtest]")
    session.run(
        "locust",
        "-f",
        "loadtests/locustfile.py",
        "--headless",
        "-u",
        "20",
        "-r",
        "5",
        "-t",
        "60s",
        *session.posargs,
    )
