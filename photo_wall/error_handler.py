"""
AWS error handling utilities for photo-wall-service
"""
from typing import Dict, Any
from botocore.exceptions import ClientError, BotoCoreError
from pynamodb.exceptions import (
    PynamoDBException, DoesNotExist, QueryError,
    UpdateError, DeleteError, PutError, GetError
)
from .constants import HTTPConstants
from .exceptions import (
    PhotoWallError, ValidationError, UnauthorizedError, CatalogError,
    PhotoNotFoundError, DuplicatePhotoError
)
from .logger import logger


CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'


class AWSErrorHandler:
    """
    Centralized AWS error handling for photo-wall-service
    """

    @staticmethod
    def is_conditional_check_failure(error: Exception) -> bool:
        """True when a PynamoDB write was rejected by its condition expression"""
        if isinstance(error, PynamoDBException):
            return getattr(error, 'cause_response_code', None) == CONDITIONAL_CHECK_FAILED
        if isinstance(error, ClientError):
            return error.response.get('Error', {}).get('Code') == CONDITIONAL_CHECK_FAILED
        return False

    @staticmethod
    def handle_dynamodb_error(error: Exception, operation: str, table_name: str = None) -> Dict[str, Any]:
        """
        Handle DynamoDB-related errors

        Args:
            error: The exception that occurred
            operation: The operation being performed
            table_name: Optional table name for context

        Returns:
            Standardized error response
        """
        error_context = {
            'operation': operation,
            'table_name': table_name or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, DoesNotExist):
            logger.warning("DynamoDB item not found", **error_context)
            return {
                'success': False,
                'error_type': 'NotFound',
                'error_message': 'The requested item was not found',
                'status_code': HTTPConstants.NOT_FOUND,
                'retryable': False
            }

        elif isinstance(error, (GetError, QueryError, UpdateError, DeleteError, PutError)):
            error_code = getattr(error, 'cause_response_code', None)
            if error_code in ('ThrottlingException', 'ProvisionedThroughputExceededException'):
                logger.warning("DynamoDB throttled", aws_error_code=error_code, **error_context)
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': 'Database is temporarily busy. Please try again.',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }

            logger.error(f"DynamoDB operation failed: {operation}", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': f'Database operation failed: {operation}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, PynamoDBException):
            logger.error("PynamoDB error occurred", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': 'Database operation failed',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, ClientError):
            error_code = error.response.get('Error', {}).get('Code', 'Unknown')
            error_context['aws_error_code'] = error_code

            logger.error("DynamoDB ClientError", error=error, **error_context)

            if error_code == 'ResourceNotFoundException':
                return {
                    'success': False,
                    'error_type': 'ResourceNotFound',
                    'error_message': 'Database resource not found',
                    'status_code': HTTPConstants.SERVICE_UNAVAILABLE,
                    'retryable': False
                }
            return {
                'success': False,
                'error_type': 'AWSError',
                'error_message': f'AWS error: {error_code}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, BotoCoreError):
            logger.error("DynamoDB connection error", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'ConnectionError',
                'error_message': 'Database is unreachable',
                'status_code': HTTPConstants.SERVICE_UNAVAILABLE,
                'retryable': True
            }

        else:
            logger.error("Unexpected database error", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': 'Unexpected database error occurred',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': False
            }

    @staticmethod
    def handle_s3_error(error: Exception, operation: str, bucket_name: str = None, key: str = None) -> Dict[str, Any]:
        """
        Handle S3-related errors

        Args:
            error: The exception that occurred
            operation: The operation being performed
            bucket_name: Optional bucket name for context
            key: Optional S3 key for context

        Returns:
            Standardized error response
        """
        error_context = {
            'operation': operation,
            'bucket_name': bucket_name or 'unknown',
            's3_key': key or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, ClientError):
            error_code = error.response.get('Error', {}).get('Code', 'Unknown')
            error_context['aws_error_code'] = error_code

            logger.error("S3 ClientError", error=error, **error_context)

            if error_code == 'NoSuchBucket':
                return {
                    'success': False,
                    'error_type': 'BucketNotFound',
                    'error_message': 'Storage bucket not found',
                    'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                    'retryable': False
                }
            elif error_code == 'AccessDenied':
                return {
                    'success': False,
                    'error_type': 'AccessDenied',
                    'error_message': 'Access denied to storage resource',
                    'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                    'retryable': False
                }
            elif error_code in ['SlowDown', 'RequestLimitExceeded']:
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': 'Storage service is busy. Please try again.',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }
            return {
                'success': False,
                'error_type': 'StorageError',
                'error_message': f'Storage error: {error_code}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, BotoCoreError):
            logger.error("S3 connection error", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'StorageUnavailable',
                'error_message': 'Storage service is unreachable',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        logger.error("Unexpected S3 error", error=error, **error_context)
        return {
            'success': False,
            'error_type': 'StorageError',
            'error_message': 'Unexpected storage error occurred',
            'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
            'retryable': False
        }

    @staticmethod
    def status_code_for(error: Exception) -> int:
        """Map a service exception to the HTTP status it is reported with"""
        if isinstance(error, ValidationError):
            return HTTPConstants.BAD_REQUEST
        if isinstance(error, UnauthorizedError):
            return HTTPConstants.FORBIDDEN
        if isinstance(error, PhotoNotFoundError):
            return HTTPConstants.NOT_FOUND
        if isinstance(error, DuplicatePhotoError):
            return HTTPConstants.CONFLICT
        return HTTPConstants.INTERNAL_SERVER_ERROR

    @staticmethod
    def create_error_body(message: str, error: Exception = None) -> Dict[str, Any]:
        """
        Build the JSON payload returned for a failed request

        Args:
            message: Human readable summary for the failed operation
            error: The exception that caused the failure

        Returns:
            {message, error[, error_code]}
        """
        body = {'message': message}

        if error is not None:
            body['error'] = error.message if isinstance(error, PhotoWallError) else str(error)
            if isinstance(error, PhotoWallError) and error.error_code:
                body['error_code'] = error.error_code

        return body


def catalog_error_from(error: Exception, operation: str, table_name: str = None) -> CatalogError:
    """Translate a low-level DynamoDB failure into a CatalogError"""
    error_response = error_handler.handle_dynamodb_error(error, operation, table_name)
    return CatalogError(
        error_response['error_message'],
        operation=operation,
        table=table_name,
        original_error=str(error)
    )


# Global error handler instance
error_handler = AWSErrorHandler()
