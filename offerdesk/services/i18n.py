"""Buyer-facing message catalogs and language resolution.

Each supported language has one MessageCatalog: plain format strings for the
received / accepted / declined messages. Building the final subject or body
is done by the catalog methods, so adding a language means adding one entry
to CATALOGS.

Language resolution (resolve_language):
1. Exact match of the lower-cased tag ("pt-pt", "zh-cn", "fr")
2. Primary subtag if it is itself supported ("fr-ca" -> "fr")
3. English

Portuguese only has the European catalog, so "pt-br" and bare "pt" fall
through to English.
"""

from dataclasses import dataclass
from enum import Enum
from html import escape


class Language(str, Enum):
    EN = "en"
    JA = "ja"
    DE = "de"
    ZH_CN = "zh-cn"
    NL = "nl"
    KO = "ko"
    HE = "he"
    CS = "cs"
    PL = "pl"
    ES = "es"
    IT = "it"
    NB = "nb"
    DA = "da"
    EL = "el"
    FR = "fr"
    PT_PT = "pt-pt"
    SL = "sl"
    HU = "hu"
    FI = "fi"
    SV = "sv"


DEFAULT_LANGUAGE = Language.EN

_SUPPORTED = {lang.value: lang for lang in Language}


def resolve_language(tag: str | None) -> Language:
    """Map a storefront language tag to a supported Language."""
    base = str(tag or "").strip().lower().replace("_", "-")
    if not base:
        return DEFAULT_LANGUAGE
    if base in _SUPPORTED:
        return _SUPPORTED[base]
    primary = base.split("-", 1)[0]
    if primary in _SUPPORTED:
        return _SUPPORTED[primary]
    return DEFAULT_LANGUAGE


def babel_locale(language: Language) -> str:
    """Locale identifier Babel understands for a Language ("pt-pt" -> "pt_PT")."""
    if "-" in language.value:
        lang, region = language.value.split("-", 1)
        return f"{lang}_{region.upper()}"
    return language.value


@dataclass(frozen=True)
class AcceptedParams:
    """Values interpolated into the acceptance message. Already formatted."""

    amount: str
    title: str
    variant_title: str
    code: str
    ends_at: str
    with_item_url: str
    apply_only_url: str


@dataclass(frozen=True)
class MessageCatalog:
    received_subject: str
    received_text: str
    accepted_subject: str
    accepted_intro: str
    code_label: str
    valid_until: str
    with_item_label: str
    apply_only_label: str
    link_hint: str
    declined_subject: str
    declined_body: str
    contact_us: str = "(contact us)"
    variant_suffix: str = " ({variant})"

    def received(self, *, amount: str, title: str) -> tuple[str, str]:
        """Subject and plain-text body for the "offer received" auto-reply."""
        return (
            self.received_subject.format(title=title),
            self.received_text.format(amount=amount, title=title),
        )

    def accepted(self, params: AcceptedParams) -> tuple[str, str]:
        """Subject and HTML body for the acceptance message."""
        variant = self.variant_suffix.format(variant=escape(params.variant_title)) if params.variant_title else ""
        valid = self.valid_until.format(ends_at=escape(params.ends_at)) if params.ends_at else ""
        html = "\n".join(
            [
                "<p>"
                + self.accepted_intro.format(
                    amount=escape(params.amount),
                    title=escape(params.title),
                    variant=variant,
                )
                + "</p>",
                "<p>" + self.code_label.format(valid=valid) + "</p>",
                f'<p style="font-size:18px"><b>{escape(params.code)}</b></p>',
                "<ul>",
                f'<li><a href="{escape(params.with_item_url)}">{self.with_item_label}</a></li>',
                f'<li><a href="{escape(params.apply_only_url)}">{self.apply_only_label}</a></li>',
                "</ul>",
                f"<p>{self.link_hint}</p>",
            ]
        )
        return self.accepted_subject.format(title=params.title), html

    def declined(self, *, title: str) -> tuple[str, str]:
        """Subject and HTML body for the decline message."""
        return (
            self.declined_subject.format(title=title),
            "<p>" + self.declined_body.format(title=escape(title)) + "</p>",
        )


CATALOGS: dict[Language, MessageCatalog] = {
    Language.EN: MessageCatalog(
        received_subject="We received your offer – {title}",
        received_text="Thanks! Your offer of {amount} for “{title}” was received. We’ll get back to you soon.",
        accepted_subject="Your offer was accepted – {title}",
        accepted_intro="Great news — we’ve accepted your offer of <b>{amount}</b> for <b>{title}</b>{variant}.",
        code_label="Your single-use discount code{valid}:",
        valid_until=" (valid until <b>{ends_at}</b>)",
        with_item_label="Add the item and apply the code",
        apply_only_label="Apply the code and go to your cart",
        link_hint="If the link doesn’t open, copy the code above and enter it at checkout.",
        declined_subject="Offer update – {title}",
        declined_body=(
            "Thanks for your offer on <b>{title}</b>. We can’t accept that amount right now. "
            "Feel free to reply with a revised offer."
        ),
    ),
    Language.JA: MessageCatalog(
        received_subject="ご提案を受け付けました – {title}",
        received_text=(
            "ご提案ありがとうございます。「{title}」に対するご希望価格 {amount} を受け付けました。"
            "担当者より折り返しご連絡いたします。"
        ),
        accepted_subject="ご提案が承認されました – {title}",
        accepted_intro="朗報です。<b>{title}</b>{variant} に対する <b>{amount}</b> のご提案を承認しました。",
        code_label="単回利用の割引コード{valid}：",
        valid_until="（有効期限：<b>{ends_at}</b>）",
        with_item_label="アイテムを追加してコードを適用",
        apply_only_label="コードを適用してカートへ",
        link_hint="リンクが開けない場合は、上記コードをコピーしてチェックアウトで入力してください。",
        declined_subject="ご提案について – {title}",
        declined_body="<b>{title}</b> へのご提案ありがとうございます。現時点では承認できませんでした。別の価格で再度ご提案ください。",
        contact_us="（お問い合わせください）",
        variant_suffix="（{variant}）",
    ),
    Language.DE: MessageCatalog(
        received_subject="Angebot erhalten – {title}",
        received_text="Danke! Ihr Angebot über {amount} für „{title}“ ist eingegangen. Wir melden uns bald.",
        accepted_subject="Angebot angenommen – {title}",
        accepted_intro="Gute Nachrichten — Ihr Angebot von <b>{amount}</b> für <b>{title}</b>{variant} wurde angenommen.",
        code_label="Einmaliger Rabattcode{valid}:",
        valid_until=" (gültig bis <b>{ends_at}</b>)",
        with_item_label="Artikel hinzufügen und Code anwenden",
        apply_only_label="Code anwenden und zum Warenkorb",
        link_hint="Falls der Link nicht öffnet, Code beim Checkout eingeben.",
        declined_subject="Update zum Angebot – {title}",
        declined_body=(
            "Danke für Ihr Angebot zu <b>{title}</b>. Aktuell können wir es nicht annehmen. "
            "Gern können Sie einen neuen Vorschlag senden."
        ),
        contact_us="(kontaktieren Sie uns)",
    ),
    Language.ZH_CN: MessageCatalog(
        received_subject="已收到您的出价 – {title}",
        received_text="谢谢！我们已收到您对“{title}”的出价 {amount}。我们会尽快与您联系。",
        accepted_subject="出价已接受 – {title}",
        accepted_intro="好消息——我们已接受您对 <b>{title}</b>{variant} 的 <b>{amount}</b> 出价。",
        code_label="一次性优惠码{valid}：",
        valid_until="（有效期至 <b>{ends_at}</b>）",
        with_item_label="将商品加入购物车并应用优惠码",
        apply_only_label="仅应用优惠码并前往购物车",
        link_hint="如果链接无法打开，请在结账时手动输入该优惠码。",
        declined_subject="出价更新 – {title}",
        declined_body="感谢您对 <b>{title}</b> 的出价。目前我们无法接受该金额。如需调整价格，欢迎再次出价。",
        contact_us="（请联系我们）",
        variant_suffix="（{variant}）",
    ),
    Language.NL: MessageCatalog(
        received_subject="Aanbod ontvangen – {title}",
        received_text="Bedankt! Uw bod van {amount} voor “{title}” is ontvangen. We nemen spoedig contact op.",
        accepted_subject="Bod geaccepteerd – {title}",
        accepted_intro="Goed nieuws — uw bod van <b>{amount}</b> voor <b>{title}</b>{variant} is geaccepteerd.",
        code_label="Eenmalige kortingscode{valid}:",
        valid_until=" (geldig tot <b>{ends_at}</b>)",
        with_item_label="Artikel toevoegen en code toepassen",
        apply_only_label="Code toepassen en naar winkelwagen",
        link_hint="Werkt de link niet? Kopieer de code en voer deze in bij het afrekenen.",
        declined_subject="Update bod – {title}",
        declined_body=(
            "Bedankt voor uw bod op <b>{title}</b>. We kunnen dit bedrag nu niet accepteren. "
            "U mag een aangepast bod sturen."
        ),
        contact_us="(neem contact met ons op)",
    ),
    Language.KO: MessageCatalog(
        received_subject="제안을 접수했습니다 – {title}",
        received_text="감사합니다. “{title}”에 대한 제안가 {amount} 가 접수되었습니다. 곧 연락드리겠습니다.",
        accepted_subject="제안이 승인되었습니다 – {title}",
        accepted_intro="<b>{title}</b>{variant} 에 대한 <b>{amount}</b> 제안이 승인되었습니다.",
        code_label="일회용 할인 코드{valid}:",
        valid_until=" (유효기간: <b>{ends_at}</b>)",
        with_item_label="상품 추가 후 코드 적용",
        apply_only_label="코드 적용 후 장바구니로",
        link_hint="링크가 열리지 않으면 체크아웃에서 코드를 입력하세요.",
        declined_subject="제안 안내 – {title}",
        declined_body="<b>{title}</b>에 대한 제안 감사드립니다. 현재 가격으로는 승인하기 어렵습니다. 다른 가격으로 다시 제안해 주세요.",
        contact_us="(문의해 주세요)",
    ),
    Language.HE: MessageCatalog(
        received_subject="הצעתך התקבלה – {title}",
        received_text="תודה! ההצעה שלך על סך {amount} עבור „{title}” התקבלה. נחזור אליך בקרוב.",
        accepted_subject="הצעתך אושרה – {title}",
        accepted_intro="בשורה טובה — הצעתך על <b>{amount}</b> עבור <b>{title}</b>{variant} אושרה.",
        code_label="קוד הנחה חד-פעמי{valid}:",
        valid_until=" (בתוקף עד <b>{ends_at}</b>)",
        with_item_label="הוסף את הפריט ויישם את הקוד",
        apply_only_label="יישום קוד והמשך לעגלה",
        link_hint="אם הקישור לא נפתח, העתק את הקוד והזן אותו בקופה.",
        declined_subject="עדכון לגבי ההצעה – {title}",
        declined_body="תודה על ההצעה ל-<b>{title}</b>. בשלב זה לא נוכל לאשר. נשמח להצעה מעודכנת.",
        contact_us="(צרו איתנו קשר)",
    ),
    Language.CS: MessageCatalog(
        received_subject="Nabídka přijata – {title}",
        received_text="Děkujeme! Vaši nabídku {amount} na „{title}” jsme přijali. Brzy se ozveme.",
        accepted_subject="Nabídka přijata – {title}",
        accepted_intro="Skvělé zprávy — nabídku <b>{amount}</b> na <b>{title}</b>{variant} jsme přijali.",
        code_label="Jednorázový slevový kód{valid}:",
        valid_until=" (platný do <b>{ends_at}</b>)",
        with_item_label="Přidat položku a použít kód",
        apply_only_label="Použít kód a přejít do košíku",
        link_hint="Pokud odkaz nefunguje, zadejte kód při pokladně.",
        declined_subject="Aktualizace nabídky – {title}",
        declined_body=(
            "Děkujeme za nabídku na <b>{title}</b>. V tuto chvíli ji nemůžeme přijmout. "
            "Pošlete prosím upravenou nabídku."
        ),
        contact_us="(kontaktujte nás)",
    ),
    Language.PL: MessageCatalog(
        received_subject="Otrzymaliśmy Twoją ofertę – {title}",
        received_text="Dziękujemy! Twoja oferta {amount} dla „{title}” została przyjęta. Wkrótce się odezwiemy.",
        accepted_subject="Oferta zaakceptowana – {title}",
        accepted_intro="Dobra wiadomość — zaakceptowaliśmy Twoją ofertę <b>{amount}</b> na <b>{title}</b>{variant}.",
        code_label="Jednorazowy kod rabatowy{valid}:",
        valid_until=" (ważny do <b>{ends_at}</b>)",
        with_item_label="Dodaj produkt i zastosuj kod",
        apply_only_label="Zastosuj kod i przejdź do koszyka",
        link_hint="Jeśli link nie działa, wprowadź kod przy kasie.",
        declined_subject="Aktualizacja oferty – {title}",
        declined_body=(
            "Dziękujemy za ofertę na <b>{title}</b>. Obecnie nie możemy jej zaakceptować. "
            "Prosimy o nową propozycję ceny."
        ),
        contact_us="(skontaktuj się z nami)",
    ),
    Language.ES: MessageCatalog(
        received_subject="Hemos recibido tu oferta – {title}",
        received_text="¡Gracias! Hemos recibido tu oferta de {amount} por “{title}”. Te contactaremos pronto.",
        accepted_subject="Tu oferta fue aceptada – {title}",
        accepted_intro="Buenas noticias: aceptamos tu oferta de <b>{amount}</b> por <b>{title}</b>{variant}.",
        code_label="Código de descuento de un solo uso{valid}:",
        valid_until=" (válido hasta <b>{ends_at}</b>)",
        with_item_label="Añadir el artículo y aplicar el código",
        apply_only_label="Aplicar el código e ir al carrito",
        link_hint="Si el enlace no abre, copia el código y úsalo en el pago.",
        declined_subject="Actualización de oferta – {title}",
        declined_body=(
            "Gracias por tu oferta por <b>{title}</b>. No podemos aceptarla por ahora. "
            "Envía otra propuesta si quieres."
        ),
        contact_us="(contáctanos)",
    ),
    Language.IT: MessageCatalog(
        received_subject="Offerta ricevuta – {title}",
        received_text="Grazie! La tua offerta di {amount} per “{title}” è stata ricevuta. Ti contatteremo presto.",
        accepted_subject="Offerta accettata – {title}",
        accepted_intro="Ottime notizie — abbiamo accettato la tua offerta di <b>{amount}</b> per <b>{title}</b>{variant}.",
        code_label="Codice sconto monouso{valid}:",
        valid_until=" (valido fino al <b>{ends_at}</b>)",
        with_item_label="Aggiungi l’articolo e applica il codice",
        apply_only_label="Applica il codice e vai al carrello",
        link_hint="Se il link non si apre, copia il codice e inseriscilo al checkout.",
        declined_subject="Aggiornamento offerta – {title}",
        declined_body=(
            "Grazie per la tua offerta su <b>{title}</b>. Al momento non possiamo accettarla. "
            "Inviaci pure una nuova proposta."
        ),
        contact_us="(contattaci)",
    ),
    Language.NB: MessageCatalog(
        received_subject="Tilbud mottatt – {title}",
        received_text="Takk! Vi har mottatt tilbudet ditt på {amount} for «{title}». Vi tar kontakt snart.",
        accepted_subject="Tilbud godtatt – {title}",
        accepted_intro="Gode nyheter — tilbudet ditt på <b>{amount}</b> for <b>{title}</b>{variant} er godtatt.",
        code_label="Engangsrabattkode{valid}:",
        valid_until=" (gyldig til <b>{ends_at}</b>)",
        with_item_label="Legg til varen og bruk koden",
        apply_only_label="Bruk koden og gå til handlekurv",
        link_hint="Åpner ikke lenken? Skriv inn koden i kassen.",
        declined_subject="Oppdatering om tilbud – {title}",
        declined_body="Takk for tilbudet på <b>{title}</b>. Vi kan ikke godta det nå. Send gjerne et nytt tilbud.",
        contact_us="(kontakt oss)",
    ),
    Language.DA: MessageCatalog(
        received_subject="Tilbud modtaget – {title}",
        received_text="Tak! Vi har modtaget dit tilbud på {amount} for “{title}”. Vi vender tilbage snarest.",
        accepted_subject="Tilbud accepteret – {title}",
        accepted_intro="Gode nyheder — dit tilbud på <b>{amount}</b> for <b>{title}</b>{variant} er accepteret.",
        code_label="Engangsrabatkode{valid}:",
        valid_until=" (gyldig til <b>{ends_at}</b>)",
        with_item_label="Tilføj varen og brug koden",
        apply_only_label="Brug koden og gå til kurv",
        link_hint="Hvis linket ikke åbner, indtast koden ved checkout.",
        declined_subject="Opdatering om tilbud – {title}",
        declined_body="Tak for dit tilbud på <b>{title}</b>. Vi kan ikke acceptere det lige nu. Send gerne et nyt.",
        contact_us="(kontakt os)",
    ),
    Language.EL: MessageCatalog(
        received_subject="Λάβαμε την προσφορά σας – {title}",
        received_text="Ευχαριστούμε! Λάβαμε την προσφορά σας {amount} για «{title}». Θα επικοινωνήσουμε σύντομα.",
        accepted_subject="Η προσφορά σας έγινε δεκτή – {title}",
        accepted_intro="Καλά νέα — δεχτήκαμε την προσφορά <b>{amount}</b> για <b>{title}</b>{variant}.",
        code_label="Μοναδικός κωδικός έκπτωσης{valid}:",
        valid_until=" (ισχύει έως <b>{ends_at}</b>)",
        with_item_label="Προσθήκη προϊόντος &amp; εφαρμογή κωδικού",
        apply_only_label="Εφαρμογή κωδικού &amp; μετάβαση στο καλάθι",
        link_hint="Αν ο σύνδεσμος δεν ανοίγει, εισαγάγετε τον κωδικό στο ταμείο.",
        declined_subject="Ενημέρωση προσφοράς – {title}",
        declined_body=(
            "Ευχαριστούμε για την προσφορά στο <b>{title}</b>. Δεν μπορούμε να την αποδεχτούμε αυτή τη στιγμή. "
            "Μπορείτε να προτείνετε νέο ποσό."
        ),
        contact_us="(επικοινωνήστε μαζί μας)",
    ),
    Language.FR: MessageCatalog(
        received_subject="Offre reçue – {title}",
        received_text=(
            "Merci ! Nous avons bien reçu votre offre de {amount} pour « {title} ». "
            "Nous revenons vers vous rapidement."
        ),
        accepted_subject="Offre acceptée – {title}",
        accepted_intro="Bonne nouvelle — nous avons accepté votre offre de <b>{amount}</b> pour <b>{title}</b>{variant}.",
        code_label="Code de réduction à usage unique{valid} :",
        valid_until=" (valable jusqu’au <b>{ends_at}</b>)",
        with_item_label="Ajouter l’article et appliquer le code",
        apply_only_label="Appliquer le code et aller au panier",
        link_hint="Si le lien ne s’ouvre pas, copiez le code et saisissez-le au paiement.",
        declined_subject="Mise à jour de l’offre – {title}",
        declined_body=(
            "Merci pour votre offre concernant <b>{title}</b>. Nous ne pouvons pas l’accepter pour le moment. "
            "N’hésitez pas à nous proposer un autre montant."
        ),
        contact_us="(contactez-nous)",
    ),
    Language.PT_PT: MessageCatalog(
        received_subject="Recebemos a sua proposta – {title}",
        received_text="Obrigado! Recebemos a sua proposta de {amount} para “{title}”. Entraremos em contacto em breve.",
        accepted_subject="Proposta aceite – {title}",
        accepted_intro="Boas notícias — aceitámos a sua proposta de <b>{amount}</b> para <b>{title}</b>{variant}.",
        code_label="Código de desconto de utilização única{valid}:",
        valid_until=" (válido até <b>{ends_at}</b>)",
        with_item_label="Adicionar o artigo e aplicar o código",
        apply_only_label="Aplicar o código e ir para o carrinho",
        link_hint="Se o link não abrir, copie o código e introduza-o no checkout.",
        declined_subject="Atualização da proposta – {title}",
        declined_body=(
            "Obrigado pela sua proposta para <b>{title}</b>. De momento não a podemos aceitar. "
            "Envie-nos outra proposta, se desejar."
        ),
        contact_us="(contacte-nos)",
    ),
    Language.SL: MessageCatalog(
        received_subject="Ponudba prejeta – {title}",
        received_text="Hvala! Vašo ponudbo {amount} za »{title}« smo prejeli. Kmalu vas kontaktiramo.",
        accepted_subject="Ponudba sprejeta – {title}",
        accepted_intro="Odlična novica — sprejeli smo vašo ponudbo <b>{amount}</b> za <b>{title}</b>{variant}.",
        code_label="Enkratna koda za popust{valid}:",
        valid_until=" (veljavna do <b>{ends_at}</b>)",
        with_item_label="Dodaj izdelek in uporabi kodo",
        apply_only_label="Uporabi kodo in pojdi v košarico",
        link_hint="Če se povezava ne odpre, vnesite kodo pri blagajni.",
        declined_subject="Posodobitev ponudbe – {title}",
        declined_body=(
            "Hvala za ponudbo za <b>{title}</b>. Trenutno je ne moremo sprejeti. "
            "Pošljite nam novo ponudbo, če želite."
        ),
        contact_us="(kontaktirajte nas)",
    ),
    Language.HU: MessageCatalog(
        received_subject="Ajánlat megérkezett – {title}",
        received_text="Köszönjük! Megkaptuk a(z) {amount} összegű ajánlatát a „{title}” termékre. Hamarosan jelentkezünk.",
        accepted_subject="Ajánlat elfogadva – {title}",
        accepted_intro="Jó hír — elfogadtuk <b>{amount}</b> összegű ajánlatát a <b>{title}</b>{variant} termékre.",
        code_label="Egyszer használható kedvezménykód{valid}:",
        valid_until=" (érvényes eddig: <b>{ends_at}</b>)",
        with_item_label="Tétel hozzáadása és kód alkalmazása",
        apply_only_label="Kód alkalmazása és kosár",
        link_hint="Ha a link nem nyílik meg, írja be a kódot a fizetésnél.",
        declined_subject="Ajánlat frissítése – {title}",
        declined_body=(
            "Köszönjük az ajánlatot a <b>{title}</b> termékre. Jelenleg nem tudjuk elfogadni. "
            "Küldjön nyugodtan új ajánlatot."
        ),
        contact_us="(vegye fel velünk a kapcsolatot)",
    ),
    Language.FI: MessageCatalog(
        received_subject="Tarjous vastaanotettu – {title}",
        received_text="Kiitos! Vastaanotimme tarjouksesi {amount} tuotteesta ”{title}”. Otamme pian yhteyttä.",
        accepted_subject="Tarjous hyväksytty – {title}",
        accepted_intro="Hyviä uutisia — hyväksyimme tarjouksesi <b>{amount}</b> tuotteesta <b>{title}</b>{variant}.",
        code_label="Kertakäyttöinen alennuskoodi{valid}:",
        valid_until=" (voimassa <b>{ends_at}</b> asti)",
        with_item_label="Lisää tuote ja käytä koodi",
        apply_only_label="Käytä koodi ja siirry koriin",
        link_hint="Jos linkki ei aukea, syötä koodi kassalla.",
        declined_subject="Tarjouksen päivitys – {title}",
        declined_body=(
            "Kiitos tarjouksestasi tuotteesta <b>{title}</b>. Emme voi hyväksyä sitä tällä hetkellä. "
            "Voit lähettää uuden ehdotuksen."
        ),
        contact_us="(ota meihin yhteyttä)",
    ),
    Language.SV: MessageCatalog(
        received_subject="Erbjudande mottaget – {title}",
        received_text="Tack! Vi har mottagit ditt erbjudande på {amount} för ”{title}”. Vi återkommer snart.",
        accepted_subject="Erbjudande accepterat – {title}",
        accepted_intro="Goda nyheter — vi har accepterat ditt erbjudande på <b>{amount}</b> för <b>{title}</b>{variant}.",
        code_label="Engångsrabattkod{valid}:",
        valid_until=" (giltig till <b>{ends_at}</b>)",
        with_item_label="Lägg till varan och använd koden",
        apply_only_label="Använd koden och gå till kundvagnen",
        link_hint="Om länken inte öppnas, ange koden i kassan.",
        declined_subject="Uppdatering om erbjudande – {title}",
        declined_body=(
            "Tack för ditt erbjudande på <b>{title}</b>. Vi kan inte acceptera det just nu. "
            "Skicka gärna ett nytt förslag."
        ),
        contact_us="(kontakta oss)",
    ),
}


def catalog_for(language: Language) -> MessageCatalog:
    return CATALOGS.get(language, CATALOGS[DEFAULT_LANGUAGE])
