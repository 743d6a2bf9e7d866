from agentfactors.llm import DummyLLM, LLMRequest, make_llm

def test_dummy_llm_drafts_from_last_line():
    out = DummyLLM().generate(LLMRequest(prompt="Consigne\nPouvez-vous rappeler demain ?"))
    assert "Pouvez-vous rappeler demain ?" in out
    assert "Consigne" not in out

def test_make_llm_dummy():
    assert isinstance(make_llm("dummy"), DummyLLM)
    assert isinstance(make_llm("DUMMY"), DummyLLM)
