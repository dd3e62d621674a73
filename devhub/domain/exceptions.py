from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""


class AuthError(DomainError):
    """Base para erros de autenticacao."""


class InvalidStateError(AuthError):
    """State do OAuth ausente, desconhecido ou ja consumido."""


class ExpiredStateError(InvalidStateError):
    """State do OAuth emitido fora da janela de validade."""


class ProviderError(DomainError):
    """Provedor externo indisponivel, com timeout ou resposta nao-2xx."""


class IdentityProviderError(ProviderError):
    """Falha na troca de code ou leitura de perfil no provedor de identidade."""


class PaymentProviderError(ProviderError):
    """Falha na comunicacao com o provedor de pagamento."""


class NoVerifiedEmailError(AuthError):
    """Provedor nao retornou email primario e verificado."""


class UnauthenticatedError(AuthError):
    """Requisicao sem identidade valida."""


class SessionInvalidError(UnauthenticatedError):
    """Sessao desconhecida, inativa ou expirada."""


class AccessTokenInvalidError(UnauthenticatedError):
    """Bearer token com assinatura ou claims invalidas."""


class ForbiddenError(AuthError):
    """Identidade valida sem permissao para a operacao."""


class AccountInactiveError(ForbiddenError):
    """Conta desativada."""


class AccountNotFoundError(DomainError):
    """Conta solicitada nao existe."""


class EmailAlreadyExistsError(DomainError):
    """Violacao da unicidade de email na camada de storage."""


class BillingError(DomainError):
    """Base para erros de checkout."""


class ProductNotFoundError(BillingError):
    """Produto solicitado nao existe."""


class ProductNotPurchasableError(BillingError):
    """Produto existe mas nao esta disponivel para compra."""


class AlreadyOwnedError(BillingError):
    """Comprador ja possui compra concluida do produto."""


class SelfPurchaseError(BillingError):
    """Criador tentando comprar o proprio produto."""


class PurchaseNotFoundError(BillingError):
    """Compra nao encontrada para o comprador."""


class CompletedPurchaseConflictError(BillingError):
    """Violacao da unicidade de compra concluida por (comprador, produto)."""


class SignatureInvalidError(DomainError):
    """Assinatura do webhook nao confere com o payload bruto."""


class StaleTransitionError(DomainError):
    """Transicao pedida para compra que ja esta em estado terminal."""
