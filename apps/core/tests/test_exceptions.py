"""
Tests for the error taxonomy and the API exception handler.
"""

import uuid

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework.exceptions import NotAuthenticated

from apps.core.exceptions import (
    ErrorBody,
    ErrorCode,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
    WorkflowGuardError,
    humanize_field,
    publisher_exception_handler,
)


class TestValidationError:

    def test_full_messages(self):
        error = ValidationError([
            ('title', "can't be blank"),
            ('topic_section_id', "can't be blank"),
            ('__all__', "Something is off"),
        ])

        assert error.full_messages == [
            "Title can't be blank",
            "Topic section can't be blank",
            "Something is off",
        ]
        assert error.message == "Title can't be blank"

    def test_errors_grouped_by_field(self):
        error = ValidationError([('slug', 'a'), ('slug', 'b'), ('body', 'c')])

        assert error.as_dict() == {'slug': ['a', 'b'], 'body': ['c']}
        assert error.status_code == 400

    @pytest.mark.parametrize('name, expected', [
        ('title', 'Title'),
        ('content_owner_id', 'Content owner'),
        ('latest_edition', 'Latest edition'),
    ])
    def test_humanize_field(self, name, expected):
        assert humanize_field(name) == expected


class TestExceptionHandler:

    def test_validation_error(self):
        response = publisher_exception_handler(ValidationError([('title', "can't be blank")]), {})

        assert response.status_code == 400
        assert response.data['error']['code'] == ErrorCode.VALIDATION_ERROR.value
        assert response.data['error']['details'] == {'errors': {'title': ["can't be blank"]}}
        assert 'request_id' in response.data

    def test_workflow_guard_error(self):
        exc = WorkflowGuardError("You can't approve your own edition", guard='no_self_approval')

        response = publisher_exception_handler(exc, {})

        assert response.status_code == 409
        assert response.data['error']['code'] == 'INVALID_TRANSITION'
        assert response.data['error']['details'] == {'guard': 'no_self_approval'}

    def test_not_found(self):
        assert publisher_exception_handler(NotFoundError("Edition 1 not found"), {}).status_code == 404
        assert publisher_exception_handler(Http404(), {}).status_code == 404

    def test_external_service_error(self):
        response = publisher_exception_handler(ExternalServiceError("Publishing API returned 500"), {})

        assert response.status_code == 502
        assert response.data['error']['message'] == "Publishing API returned 500"

    def test_django_validation_error(self):
        response = publisher_exception_handler(DjangoValidationError({'slug': ['bad']}), {})

        assert response.status_code == 400
        assert response.data['error']['details'] == {'slug': ['bad']}

    def test_drf_exception(self):
        response = publisher_exception_handler(NotAuthenticated(), {})

        assert response.status_code in (401, 403)
        assert response.data['error']['code'] in ('AUTHENTICATION_REQUIRED', 'PERMISSION_DENIED')

    def test_unhandled_exception_falls_through(self):
        assert publisher_exception_handler(RuntimeError('boom'), {}) is None


class TestErrorBody:

    def test_defaults(self):
        body = ErrorBody(ErrorCode.NOT_FOUND, "Edition not found")

        data = body.to_dict()

        assert data['error'] == {'code': 'NOT_FOUND', 'message': "Edition not found"}
        uuid.UUID(data['request_id'])

    def test_field_and_details(self):
        body = ErrorBody(ErrorCode.VALIDATION_ERROR, "Slug is invalid", field='slug',
                         details={'errors': ['bad']}, request_id='abc')

        assert body.to_dict() == {
            'error': {
                'code': 'VALIDATION_ERROR',
                'message': "Slug is invalid",
                'field': 'slug',
                'details': {'errors': ['bad']},
            },
            'request_id': 'abc',
        }
