from apmkit_core.agent.apm_agent import ApmAgent as ApmAgent
