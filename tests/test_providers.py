"""
Tests for the concrete provider clients and the graph knowledge base,
with the network and database mocked out.
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import requests


def test_claude_client_response():
    """Test that Claude text blocks and token usage are captured."""
    from consensus_engine.reasoner import ClaudeClient

    client = ClaudeClient(api_key='test-key')
    client.client = MagicMock()
    client.client.messages.create.return_value = SimpleNamespace(
        content=[SimpleNamespace(type='text', text='TLR9 agonists activate B cells.'),
                 SimpleNamespace(type='text', text='Confidence: 75%')],
        usage=SimpleNamespace(input_tokens=100, output_tokens=20),
        stop_reason='end_turn'
    )

    response = client.invoke("prompt", timeout=12)

    assert response.provider == 'claude'
    assert response.response_text == 'TLR9 agonists activate B cells.\nConfidence: 75%'
    assert response.tokens_used == 120
    assert response.confidence_score == 0.75
    assert client.client.messages.create.call_args.kwargs['timeout'] == 12


def test_claude_client_failure():
    from consensus_engine.errors import ErrorKind
    from consensus_engine.reasoner import ClaudeClient

    client = ClaudeClient(api_key='test-key')
    client.client = MagicMock()
    client.client.messages.create.side_effect = RuntimeError("overloaded")

    response = client.invoke("prompt", timeout=12)

    assert not response.succeeded
    assert response.error_kind == ErrorKind.PROVIDER_FAILURE


def test_openai_client_response():
    from consensus_engine.reasoner import GrokClient, OpenAIClient

    client = OpenAIClient(api_key='test-key')
    client.client = MagicMock()
    client.client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content='Answer. PMID: 111'))],
        usage=SimpleNamespace(total_tokens=55)
    )

    response = client.invoke("prompt", timeout=5)

    assert response.provider == 'openai'
    assert response.model == 'gpt-4o'
    assert response.tokens_used == 55
    assert response.sources == ['PMID:111']

    grok = GrokClient(api_key='test-key')
    assert grok.name == 'grok'
    assert str(grok.client.base_url).startswith('https://api.x.ai/v1')


def test_ollama_client_response():
    from consensus_engine.reasoner import OllamaClient

    mock_response = MagicMock()
    mock_response.json.return_value = {
        'message': {'content': 'Local answer.'},
        'prompt_eval_count': 30,
        'eval_count': 12
    }

    client = OllamaClient(base_url='http://localhost:11434/')
    with patch('consensus_engine.reasoner.ollama_client.requests.post',
               return_value=mock_response) as mock_post:
        response = client.invoke("prompt", timeout=9)

    assert response.response_text == 'Local answer.'
    assert response.tokens_used == 42
    assert mock_post.call_args.args[0] == 'http://localhost:11434/api/chat'
    assert mock_post.call_args.kwargs['json']['stream'] is False
    assert mock_post.call_args.kwargs['timeout'] == 9


def test_ollama_timeout_is_tagged():
    from consensus_engine.errors import ErrorKind
    from consensus_engine.reasoner import OllamaClient

    with patch('consensus_engine.reasoner.ollama_client.requests.post',
               side_effect=requests.exceptions.ReadTimeout("slow")):
        response = OllamaClient().invoke("prompt", timeout=1)

    assert response.error_kind == ErrorKind.PROVIDER_TIMEOUT


def test_ollama_availability():
    from consensus_engine.reasoner import OllamaClient

    with patch('consensus_engine.reasoner.ollama_client.requests.get',
               side_effect=requests.exceptions.ConnectionError("refused")):
        assert not OllamaClient().is_available()


def test_gemini_client_response():
    """Test that Gemini candidate parts and usage metadata are captured."""
    from consensus_engine.reasoner import GeminiClient

    mock_response = MagicMock()
    mock_response.json.return_value = {
        'candidates': [{
            'content': {'parts': [{'text': 'TLR9 is expressed in B cells.'},
                                  {'text': 'See PMID: 222. Confidence: 60%'}]},
            'finishReason': 'STOP'
        }],
        'usageMetadata': {'promptTokenCount': 40, 'totalTokenCount': 64}
    }

    client = GeminiClient(api_key='test-key')
    with patch('consensus_engine.reasoner.gemini_client.requests.post',
               return_value=mock_response) as mock_post:
        response = client.invoke("prompt", timeout=15)

    assert response.provider == 'gemini'
    assert response.model == 'gemini-1.5-pro'
    assert response.response_text == 'TLR9 is expressed in B cells.\nSee PMID: 222. Confidence: 60%'
    assert response.tokens_used == 64
    assert response.confidence_score == 0.6
    assert response.sources == ['PMID:222']
    assert mock_post.call_args.args[0] == (
        'https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-pro:generateContent'
    )
    assert mock_post.call_args.kwargs['headers']['x-goog-api-key'] == 'test-key'
    assert mock_post.call_args.kwargs['json']['contents'][0]['parts'] == [{'text': 'prompt'}]
    assert mock_post.call_args.kwargs['timeout'] == 15


def test_gemini_failures_are_tagged():
    from consensus_engine.errors import ErrorKind
    from consensus_engine.reasoner import GeminiClient

    client = GeminiClient(api_key='test-key', model='models/gemini-1.5-flash')
    with patch('consensus_engine.reasoner.gemini_client.requests.post',
               side_effect=requests.exceptions.ReadTimeout("slow")):
        assert client.invoke("prompt", timeout=1).error_kind == ErrorKind.PROVIDER_TIMEOUT

    rejected = MagicMock()
    rejected.raise_for_status.side_effect = requests.exceptions.HTTPError("403 Forbidden")
    with patch('consensus_engine.reasoner.gemini_client.requests.post',
               return_value=rejected) as mock_post:
        response = client.invoke("prompt", timeout=1)

    assert response.error_kind == ErrorKind.PROVIDER_FAILURE
    assert response.response_text == ''
    assert mock_post.call_args.args[0].endswith('/models/gemini-1.5-flash:generateContent')


def test_graph_knowledge_base():
    """Test Cypher parameters and node conversion."""
    from consensus_engine.librarian import GraphKnowledgeBase

    graph_client = MagicMock()
    graph_client.execute_query.return_value = [
        {'e': {'id': 7, 'category': 'company', 'subcategory': 'overview', 'title': 'Overview',
               'content': 'Body', 'importance_score': 88, 'token_count': 12,
               'created_at': datetime(2025, 2, 3)}}
    ]

    entries = GraphKnowledgeBase(graph_client).fetch_entries(['company:overview', 'people'])

    query, params = graph_client.execute_query.call_args.args
    assert 'ContextEntry' in query
    assert params == {'pairs': ['company:overview'], 'bare': ['people']}
    assert entries[0].id == '7'
    assert entries[0].importance_score == 88
    assert entries[0].created_at == datetime(2025, 2, 3)


def test_graph_knowledge_base_empty_whitelist():
    from consensus_engine.librarian import GraphKnowledgeBase

    graph_client = MagicMock()

    assert GraphKnowledgeBase(graph_client).fetch_entries([]) == []
    graph_client.execute_query.assert_not_called()


def test_graph_client_health_check():
    """Test the read session and health check against a mocked driver."""
    from consensus_engine.librarian import GraphClient

    with patch('consensus_engine.librarian.graph_client.GraphDatabase') as mock_graph:
        driver = mock_graph.driver.return_value
        session = driver.session.return_value
        session.execute_read.return_value = [{'health': 1}]

        with GraphClient('bolt://localhost:7687', 'neo4j', 'secret', database='kb') as client:
            assert client.health_check()
            assert driver.session.call_args.kwargs['database'] == 'kb'

        driver.verify_connectivity.assert_called_once()
        driver.close.assert_called_once()
        session.close.assert_called()
