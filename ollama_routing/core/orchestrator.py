"""
Multi-agent orchestrator routing each request through the classifier.
"""

import time
from typing import Any, Dict, List, Optional

from ..models import (
    AgentProcessingResult, AgentResponse, ClassifierResult, ConversationMessage,
    OrchestratorConfig, ParticipantRole, RoutingDecision, RoutingOutcome,
)
from ..utils import RoutingLogger, get_logger
from ..utils.error_handling import AgentProcessingError, ClassificationError, handle_error, retry_with_backoff
from .agents import Agent
from .classifier import Classifier
from .storage import InMemoryChatStorage

NO_AGENT_ID = "no_agent_selected"
NO_AGENT_NAME = "No Agent"


class MultiAgentOrchestrator:
    """
    Routes user requests to registered agents.

    For every request the orchestrator:
    - classifies the input against the session's history
    - falls back to the default agent when nothing matched
    - dispatches to the selected agent with that agent's own history
    - stores the exchange and keeps a bounded audit trail
    """

    def __init__(self, classifier: Classifier, options: Optional[OrchestratorConfig] = None,
                 storage: Optional[InMemoryChatStorage] = None,
                 default_agent: Optional[Agent] = None):
        self.logger = get_logger(__name__)
        self.routing_logger = RoutingLogger("orchestrator")
        self.config = options or OrchestratorConfig()
        self.classifier = classifier
        self.storage = storage or InMemoryChatStorage()
        self.default_agent = default_agent
        self.agents: Dict[str, Agent] = {}

        # Routing decision log for audit trail
        self.routing_log: List[RoutingDecision] = []

        self._routing_stats = {
            'total_requests': 0,
            'successful_routes': 0,
            'default_agent_routes': 0,
            'no_agent_routes': 0,
            'failed_routes': 0,
            'agent_usage': {}
        }

        self.logger.info("MultiAgentOrchestrator initialized")

    def add_agent(self, agent: Agent) -> None:
        """
        Register an agent and expose it to the classifier.

        Raises:
            ValueError: If an agent with the same id is already registered
        """
        if agent.id in self.agents:
            raise ValueError(f"An agent with ID '{agent.id}' already exists.")
        self.agents[agent.id] = agent
        self._routing_stats['agent_usage'].setdefault(agent.id, 0)
        self.classifier.set_agents(self.agents)
        self.logger.info(f"Agent registered: {agent.id}")

    def get_all_agents(self) -> Dict[str, Dict[str, str]]:
        return {
            agent_id: {"name": agent.name, "description": agent.description}
            for agent_id, agent in self.agents.items()
        }

    def set_default_agent(self, agent: Agent) -> None:
        self.default_agent = agent

    def classify_request(self, user_input: str, user_id: str, session_id: str) -> ClassifierResult:
        """
        Classify a request, retrying transient classifier failures.

        Raises:
            ClassificationError: If every attempt failed
        """
        chat_history = self.storage.fetch_all_chats(user_id, session_id)

        if self.config.log_classifier_chat:
            self.routing_logger.log_chat("Classifier chat history", "classifier", chat_history)

        classify = retry_with_backoff(
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
            exceptions=(ClassificationError,)
        )(self.classifier.classify)

        result = classify(user_input, chat_history)

        if self.config.log_classifier_raw_output:
            self.logger.info(f"Classifier system prompt:\n{self.classifier.system_prompt}")
        if self.config.log_classifier_output:
            self.routing_logger.log_classifier_output(
                result.selected_agent.id if result.selected_agent else None, result.confidence
            )
        return result

    def route_request(self, user_input: str, user_id: str, session_id: str,
                      additional_params: Optional[Dict[str, Any]] = None) -> AgentResponse:
        """
        Route a user request to the appropriate agent.

        Args:
            user_input: The user's message
            user_id: Identifier of the user
            session_id: Identifier of the conversation session
            additional_params: Passed through to the agent and the response metadata

        Returns:
            AgentResponse: Response from the selected agent, or an error response
        """
        start_time = time.time()
        additional_params = additional_params or {}
        self._routing_stats['total_requests'] += 1
        self.logger.info(f"Routing request: {user_input[:50]}...")

        # Step 1: Classify
        try:
            classification = self.classify_request(user_input, user_id, session_id)
        except ClassificationError as e:
            self._routing_stats['failed_routes'] += 1
            self.routing_logger.log_error(e, {'user_input': user_input[:100]})
            classification_time = time.time() - start_time
            self._log_decision(user_input, RoutingOutcome.CLASSIFICATION_FAILED, None, 0.0,
                               user_id, session_id, classification_time, {'error': e.message})
            return self._error_response(
                user_input, user_id, session_id, additional_params,
                self.config.classification_error_message, e.message, start_time
            )
        classification_time = time.time() - start_time

        # Step 2: Resolve the target agent
        selected_agent = classification.selected_agent
        outcome = RoutingOutcome.AGENT_SELECTED
        threshold = self.config.confidence_threshold
        if selected_agent and threshold is not None and classification.confidence < threshold:
            self.logger.warning(
                f"Confidence {classification.confidence:.2f} for {selected_agent.id} below threshold {threshold:.2f}"
            )
            selected_agent = None

        if selected_agent is None:
            if self.config.use_default_agent_if_none_identified and self.default_agent:
                self.routing_logger.log_fallback("classifier", self.default_agent.id, "no agent identified")
                selected_agent = self.default_agent
                outcome = RoutingOutcome.DEFAULT_AGENT
            else:
                self._routing_stats['no_agent_routes'] += 1
                self._log_decision(user_input, RoutingOutcome.NO_AGENT, None, classification.confidence,
                                   user_id, session_id, classification_time)
                return self._error_response(
                    user_input, user_id, session_id, additional_params,
                    self.config.no_selected_agent_message, "No agent selected", start_time
                )

        # Step 3: Dispatch
        metadata = AgentProcessingResult(
            user_input=user_input,
            agent_id=selected_agent.id,
            agent_name=selected_agent.name,
            user_id=user_id,
            session_id=session_id,
            additional_params=additional_params
        )
        try:
            output = self.dispatch_to_agent(selected_agent, user_input, user_id, session_id, additional_params)
        except AgentProcessingError as e:
            self._routing_stats['failed_routes'] += 1
            self._log_decision(user_input, RoutingOutcome.AGENT_FAILED, selected_agent.id,
                               classification.confidence, user_id, session_id, classification_time,
                               {'error': e.message})
            return AgentResponse(
                metadata=metadata,
                output=self.config.general_routing_error_msg_message,
                success=False,
                error_message=e.message,
                processing_time=time.time() - start_time
            )

        # Step 4: Save the exchange
        self.save_message(ConversationMessage.from_text(ParticipantRole.USER, user_input),
                          user_id, session_id, selected_agent)
        self.save_message(ConversationMessage.from_text(ParticipantRole.ASSISTANT, output),
                          user_id, session_id, selected_agent)

        self._log_decision(user_input, outcome, selected_agent.id, classification.confidence,
                           user_id, session_id, classification_time)

        self._routing_stats['successful_routes'] += 1
        if outcome == RoutingOutcome.DEFAULT_AGENT:
            self._routing_stats['default_agent_routes'] += 1
        usage = self._routing_stats['agent_usage']
        usage[selected_agent.id] = usage.get(selected_agent.id, 0) + 1

        total_time = time.time() - start_time
        if self.config.log_execution_times:
            self.routing_logger.log_execution_times({
                'Classifying user intent': classification_time,
                f'Agent {selected_agent.name} | Processing request': total_time - classification_time,
            })

        self.logger.info(f"Request routed successfully to {selected_agent.id} in {total_time:.2f}s")
        return AgentResponse(
            metadata=metadata,
            output=output,
            processing_time=total_time
        )

    def dispatch_to_agent(self, agent: Agent, user_input: str, user_id: str, session_id: str,
                          additional_params: Dict[str, Any]) -> str:
        """
        Run the agent on the request with its own chat history.

        Raises:
            AgentProcessingError: If the agent fails
        """
        agent_history = self.storage.fetch_chat(user_id, session_id, agent.id)

        if self.config.log_agent_chat:
            self.routing_logger.log_chat("Agent chat history", agent.name, agent_history)

        try:
            return agent.process_request(user_input, user_id, session_id, agent_history, additional_params)
        except Exception as e:
            error = handle_error(e, self.logger, {'agent_id': agent.id})
            raise AgentProcessingError(
                f"Agent {agent.id} failed: {error.message}", agent_id=agent.id
            ) from e

    def save_message(self, message: ConversationMessage, user_id: str, session_id: str, agent: Agent) -> None:
        self.storage.save_chat_message(
            user_id, session_id, agent.id, message,
            max_history_size=self.config.max_message_pairs_per_agent * 2
        )

    def _error_response(self, user_input: str, user_id: str, session_id: str,
                        additional_params: Dict[str, Any], output: str, error_message: str,
                        start_time: float) -> AgentResponse:
        return AgentResponse(
            metadata=AgentProcessingResult(
                user_input=user_input,
                agent_id=NO_AGENT_ID,
                agent_name=NO_AGENT_NAME,
                user_id=user_id,
                session_id=session_id,
                additional_params=additional_params
            ),
            output=output,
            success=False,
            error_message=error_message,
            processing_time=time.time() - start_time
        )

    def _log_decision(self, user_input: str, outcome: RoutingOutcome, agent_id: Optional[str],
                      confidence: float, user_id: str, session_id: str, classification_time: float,
                      metadata: Optional[Dict[str, Any]] = None) -> None:
        decision = RoutingDecision(
            user_input=user_input,
            outcome=outcome,
            agent_id=agent_id,
            confidence=confidence,
            user_id=user_id,
            session_id=session_id,
            classification_time=classification_time,
            metadata=metadata or {}
        )
        self.routing_log.append(decision)

        # Maintain log size limit
        if len(self.routing_log) > self.config.max_log_entries:
            self.routing_log = self.routing_log[-max(1, self.config.max_log_entries // 2):]

        self.routing_logger.log_routing_decision({
            'agent_id': agent_id,
            'outcome': outcome.name,
            'confidence': confidence,
            'session_id': session_id
        })

    def get_routing_statistics(self) -> Dict[str, Any]:
        """Get routing statistics and performance metrics."""
        total_requests = self._routing_stats['total_requests']

        stats = {
            'total_requests': total_requests,
            'successful_routes': self._routing_stats['successful_routes'],
            'default_agent_routes': self._routing_stats['default_agent_routes'],
            'no_agent_routes': self._routing_stats['no_agent_routes'],
            'failed_routes': self._routing_stats['failed_routes'],
            'success_rate': (self._routing_stats['successful_routes'] / total_requests * 100) if total_requests > 0 else 0,
            'agent_usage': self._routing_stats['agent_usage'].copy(),
            'recent_decisions': len(self.routing_log),
            'log_capacity': self.config.max_log_entries
        }

        if total_requests > 0:
            stats['agent_usage_percentages'] = {
                agent_id: (count / total_requests * 100)
                for agent_id, count in self._routing_stats['agent_usage'].items()
            }

        return stats

    def get_recent_routing_decisions(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get recent routing decisions for debugging and analysis."""
        recent_decisions = self.routing_log[-limit:] if self.routing_log and limit > 0 else []

        return [
            {
                'timestamp': decision.timestamp.isoformat(),
                'outcome': decision.outcome.name,
                'agent_id': decision.agent_id,
                'confidence': decision.confidence,
                'user_id': decision.user_id,
                'session_id': decision.session_id,
                'classification_time': decision.classification_time,
                'metadata': dict(decision.metadata)
            }
            for decision in recent_decisions
        ]

    def clear_routing_log(self) -> None:
        """Clear the routing decision log."""
        self.routing_log.clear()
        self.logger.info("Routing decision log cleared")

    def is_healthy(self) -> bool:
        """Check that agents are registered and the classifier backend responds."""
        if not self.agents and not self.default_agent:
            return False
        try:
            return self.classifier.is_healthy()
        except Exception as e:
            self.logger.error(f"Health check failed: {str(e)}")
            return False
