from typing import Literal

from pydantic import BaseModel

from structgen.domain.schema.reconciler import reconcile, unwrap_root
from structgen.domain.schema.shape_descriptor import ShapeDescriptor
from tests.fakes import Answer, Report


class Rated(BaseModel):
    grade: Literal["1", "2", "3"]
    score: Literal[1, 2, 3]


class TestUnwrapRoot:

    def test_extra_root_is_dropped(self):
        assert unwrap_root({"response": {"answer": "x"}}, ["answer"]) == {"answer": "x"}

    def test_declared_root_is_kept(self):
        assert unwrap_root({"analysis": {"step1": "a"}}, ["analysis"]) == {"analysis": {"step1": "a"}}

    def test_non_mapping(self):
        assert unwrap_root("text", ["answer"]) == {}
        assert unwrap_root([1, 2], ["answer"]) == {}


class TestReconcile:

    def test_plain_answer(self):
        result = reconcile("<answer>Paris</answer><confident>true</confident>", ShapeDescriptor(Answer))
        assert result == {"answer": "Paris", "confident": True}

    def test_empty_and_untagged_responses(self):
        descriptor = ShapeDescriptor(Answer)
        assert reconcile("", descriptor) == {}
        assert reconcile("I could not answer that.", descriptor) == {}

    def test_markup_inside_text_field(self):
        result = reconcile("<answer>Use <b>bold</b> text</answer>", ShapeDescriptor(Answer))
        assert result == {"answer": "Use <b>bold</b> text"}

    def test_literal_in_text_field(self):
        result = reconcile("<answer>42</answer><confident>false</confident>", ShapeDescriptor(Answer))
        assert result == {"answer": "42", "confident": False}

    def test_wrapped_response(self):
        result = reconcile(
            "<response><answer>Paris</answer><confident>true</confident></response>",
            ShapeDescriptor(Answer)
        )
        assert result == {"answer": "Paris", "confident": True}

    def test_undeclared_keys_dropped(self):
        result = reconcile("<answer>x</answer><note>y</note>", ShapeDescriptor(Answer))
        assert result == {"answer": "x"}

    def test_nested_record(self):
        response = (
            "<analysis><step1>42</step1><step2>true</step2></analysis>"
            "<answer>Paris</answer><status>ok</status>"
        )
        assert reconcile(response, ShapeDescriptor(Report)) == {
            "analysis": {"step1": "42", "step2": "true"},
            "answer": "Paris",
            "status": "ok",
        }

    def test_enum_values(self):
        result = reconcile("<grade>2</grade><score>3</score>", ShapeDescriptor(Rated))
        assert result == {"grade": "2", "score": 3}

    def test_enum_outside_values_left_alone(self):
        result = reconcile("<grade>7</grade>", ShapeDescriptor(Rated))
        assert result == {"grade": 7}


class Detail(BaseModel):
    côté: str


class Meteo(BaseModel):
    température: str
    détail: Detail


class TestSanitizedFieldNames:

    def test_fields_found_by_tag_name(self):
        result = reconcile(
            "<temp_rature>warm</temp_rature><d_tail><c_t_>north</c_t_></d_tail>",
            ShapeDescriptor(Meteo)
        )
        assert result == {"température": "warm", "détail": {"côté": "north"}}

    def test_declared_tag_name_root_is_kept(self):
        result = reconcile("<d_tail><c_t_>42</c_t_></d_tail>", ShapeDescriptor(Meteo))
        assert result == {"détail": {"côté": "42"}}
