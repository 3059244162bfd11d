from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional, Union

from .config import MAX_SOURCE_LENGTH


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TestCase(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: Optional[Union[int, str]] = None
    input_expression: str
    expected_output: str
    description: str = ''


class ExecutionRequest(_CamelModel):
    source_code: str = Field(max_length=MAX_SOURCE_LENGTH)
    mode: Literal['run', 'test'] = 'run'
    test_cases: List[TestCase] = []


class TestResult(_CamelModel):
    input_expression: str
    expected_output: str
    actual_output: str
    passed: bool
    description: str = ''
    error: Optional[str] = None


class ExecutionResponse(_CamelModel):
    success: bool
    raw_output: str
    test_results: Optional[List[TestResult]] = None
    summary: Optional[str] = None
