from .browser import ActorHandle, BrowserSession

__all__ = ['ActorHandle', 'BrowserSession']
