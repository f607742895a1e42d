import pytest

from app import create_app
from services.req_ir import Operator, ReqCourse, ReqSet


@pytest.fixture
def app(tmp_path):
    app = create_app()
    app.config.update(TESTING=True, DATASET_DIR=str(tmp_path / "terms"))
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def course(course_id, grade=None, concurrent=False):
    return ReqCourse(id=course_id, grade=grade, concurrent=concurrent)


def AND(*items):
    return ReqSet(Operator.AND, tuple(items))


def OR(*items):
    return ReqSet(Operator.OR, tuple(items))
