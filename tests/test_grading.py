from sunny.services.grading import check_answer


def q(qtype, **content):
    return {"type": qtype, "content": content}


def test_multiple_choice():
    question = q("multiple-choice", question="?", options=["a", "b"], correctIndex=1)
    assert check_answer(question, 1)
    assert check_answer(question, "1")
    assert not check_answer(question, 0)
    # True == 1 en Python, mais ce n'est pas un index
    assert not check_answer(question, True)


def test_multiple_select_ignores_order():
    question = q("multiple-select", options=["a", "b", "c"], correctIndices=[0, 2])
    assert check_answer(question, [2, 0])
    assert not check_answer(question, [0])
    assert not check_answer(question, "0,2")


def test_true_false():
    question = q("true-false", statement="The Sun is a star.", correct=True)
    assert check_answer(question, True)
    assert check_answer(question, "true")
    assert not check_answer(question, False)
    assert not check_answer(question, 1)


def test_fill_in_blank_is_case_and_space_insensitive():
    question = q("fill-in-blank", text="___", blanks=[{"position": 0, "correctAnswers": ["Denominator"]}])
    assert check_answer(question, ["  denominator "])
    assert check_answer(question, "DENOMINATOR")
    assert not check_answer(question, ["numerator"])
    assert not check_answer(question, [])


def test_number_input_with_tolerance():
    question = q("number-input", correctAnswer=3.14, tolerance=0.01)
    assert check_answer(question, 3.141)
    assert check_answer(question, "3.15")
    assert not check_answer(question, 3.2)
    assert not check_answer(question, "pi")
    exact = q("number-input", correctAnswer=4)
    assert check_answer(exact, 4)
    assert not check_answer(exact, 5)


def test_short_answer():
    question = q("short-answer", correctAnswer="setting", acceptableAnswers=["the setting"])
    assert check_answer(question, "Setting")
    assert check_answer(question, "the  setting")
    assert not check_answer(question, "")
    assert not check_answer(question, "plot")


def test_ordering():
    question = q("ordering", items=["c", "a", "b"], correctOrder=["a", "b", "c"])
    assert check_answer(question, ["A", "b", "c"])
    assert not check_answer(question, ["c", "b", "a"])


def test_unknown_type_is_incorrect():
    assert not check_answer({"type": "essay", "content": {}}, "anything")
    assert not check_answer({}, 0)
