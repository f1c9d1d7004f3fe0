"""Tests for the shared answer service behind the MCP tools."""

import threading
import time
from unittest.mock import MagicMock, patch

from askfolio import mcp_interface


def _slow_service():
    time.sleep(0.05)
    return MagicMock()


class TestGetAnswerService:
    def test_built_once_across_threads(self):
        with patch.object(mcp_interface, '_answer_service', None), \
                patch.object(mcp_interface, 'AnswerService', side_effect=_slow_service) as mock_service:
            barrier = threading.Barrier(4)
            services = []

            def worker():
                barrier.wait()
                services.append(mcp_interface.get_answer_service())

            threads = [threading.Thread(target=worker) for _ in range(4)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert mock_service.call_count == 1
        assert len({id(service) for service in services}) == 1

    def test_reuses_existing_service(self):
        existing = MagicMock()
        with patch.object(mcp_interface, '_answer_service', existing), patch.object(mcp_interface, 'AnswerService') as mock_service:
            assert mcp_interface.get_answer_service() is existing
        mock_service.assert_not_called()


class TestServiceInfo:
    def test_cache_stats_once_service_is_running(self):
        service = MagicMock()
        service.cache.stats.return_value = {'hits': 2, 'misses': 1, 'size': 1, 'hit_rate': 0.667}
        with patch.object(mcp_interface, 'get_system_info', return_value={'service_name': 'askfolio'}), \
                patch.object(mcp_interface, '_answer_service', service):
            info = mcp_interface.get_service_info()

        assert info == {'service_name': 'askfolio', 'answer_cache': {'hits': 2, 'misses': 1, 'size': 1, 'hit_rate': 0.667}}

    def test_no_cache_stats_before_first_answer(self):
        with patch.object(mcp_interface, 'get_system_info', return_value={'service_name': 'askfolio'}), \
                patch.object(mcp_interface, '_answer_service', None):
            assert mcp_interface.get_service_info() == {'service_name': 'askfolio'}
